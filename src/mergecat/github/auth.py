"""Elevated push access through a GitHub App installation token.

The workflow token cannot push to a protected main branch. The app
signs a short-lived JWT, exchanges it for an installation token, and
the clone's remote is pointed at a URL carrying that token.
"""

from __future__ import annotations

import base64
import json
import time
from collections.abc import Callable

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from mergecat.core.errors import ConfigurationError
from mergecat.core.log import Logger
from mergecat.git.repo import GitRepository
from mergecat.github.client import GitHubClient

JWT_LIFETIME = 600


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_jwt(app_id: str, key_pem: str, now: int | None = None) -> str:
    """Sign an RS256 JWT identifying the app for ten minutes.

    Raises:
        ConfigurationError: If the key is not an RSA private key
    """
    try:
        key = serialization.load_pem_private_key(
            key_pem.encode(), password=None
        )
    except ValueError as e:
        raise ConfigurationError(f"invalid app key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ConfigurationError("app key must be an RSA private key")

    iat = int(time.time()) if now is None else now
    header = {"alg": "RS256", "typ": "JWT"}
    payload = {"iat": iat, "exp": iat + JWT_LIFETIME, "iss": app_id}
    signing_input = ".".join(
        _b64url(json.dumps(part, separators=(",", ":")).encode())
        for part in (header, payload)
    )
    signature = key.sign(
        signing_input.encode("ascii"), padding.PKCS1v15(), hashes.SHA256()
    )
    return f"{signing_input}.{_b64url(signature)}"


def git_remote(token: str, slug: str, host: str = "github.com") -> str:
    return f"https://x-access-token:{token}@{host}/{slug}.git"


class Elevator:
    """Switches the clone's remote to installation-token credentials.

    The token is minted once per invocation; later calls are no-ops.
    """

    def __init__(
        self,
        repo: GitRepository,
        logger: Logger,
        app_id: str | None,
        app_key: str | None,
        slug: str | None,
        api_url: str = "https://api.github.com",
        host: str = "github.com",
        timeout: float = 30.0,
        client_factory: Callable[[str], GitHubClient] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.repo = repo
        self.logger = logger
        self.app_id = app_id
        self.app_key = app_key
        self.slug = slug
        self.host = host
        self.client_factory = client_factory or (
            lambda jwt: GitHubClient(
                jwt, api_url, timeout=timeout, transport=transport
            )
        )
        self.elevated = False

    def elevate(self) -> None:
        """Point the remote at an installation-token URL.

        Raises:
            ConfigurationError: If app id, key or repository are missing
            PlatformError: If the token exchange fails
        """
        if self.elevated:
            return
        if not self.app_id or not self.app_key:
            raise ConfigurationError(
                "app id and app key are required to push to the main branch"
            )
        if not self.slug or "/" not in self.slug:
            raise ConfigurationError(
                f"repository must be 'owner/name', got {self.slug!r}"
            )

        owner, name = self.slug.split("/", 1)
        jwt = generate_jwt(self.app_id, self.app_key)
        with self.client_factory(jwt) as client:
            installation_id = client.get_repo_installation(owner, name)
            token = client.create_installation_token(installation_id)

        self.repo.set_remote(git_remote(token, self.slug, self.host))
        # actions/checkout persists its own token as an extra header,
        # which would take precedence over the URL credentials.
        self.repo.unset_config(f"http.https://{self.host}/.extraheader")
        self.elevated = True
        self.logger.info(
            "Remote switched to app installation token",
            installation=installation_id,
        )


__all__ = ["Elevator", "generate_jwt", "git_remote"]
