"""REST client for the hosting platform."""

from __future__ import annotations

from typing import Any

import httpx

from mergecat.core.errors import PlatformError
from mergecat.github.models import (
    CommitStatus,
    MergeMethod,
    PullRequest,
    StatusState,
)

API_VERSION = "2022-11-28"


class GitHubClient:
    """Synchronous GitHub REST client.

    Every call either returns parsed data or raises PlatformError;
    httpx transport errors are converted as well. merge_pull is the
    exception: it hands back the raw response so the caller can decide
    what counts as success.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.api_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": API_VERSION,
            },
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise PlatformError(f"{method} {path} failed: {e}") from e

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._send(method, path, **kwargs)
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise PlatformError(
                f"{method} {path} returned {response.status_code}: "
                f"{message}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        return response.json()

    # Pull requests

    def get_pull(self, owner: str, repo: str, number: int) -> PullRequest:
        data = self._request("GET", f"/repos/{owner}/{repo}/pulls/{number}")
        return PullRequest.model_validate(data)

    def list_pulls(
        self, owner: str, repo: str, base: str, per_page: int = 10
    ) -> list[PullRequest]:
        """Open pull requests into `base`, most recently updated first."""
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls",
            params={
                "state": "open",
                "base": base,
                "sort": "updated",
                "direction": "desc",
                "per_page": per_page,
            },
        )
        return [PullRequest.model_validate(item) for item in data]

    def merge_pull(
        self,
        owner: str,
        repo: str,
        number: int,
        sha: str,
        method: MergeMethod,
        commit_title: str | None = None,
    ) -> httpx.Response:
        """PUT the merge; the platform rejects it if `sha` is stale."""
        body: dict[str, Any] = {"sha": sha, "merge_method": method.value}
        if commit_title:
            body["commit_title"] = commit_title
        return self._send(
            "PUT", f"/repos/{owner}/{repo}/pulls/{number}/merge", json=body
        )

    # Statuses and comments

    def list_statuses(
        self, owner: str, repo: str, ref: str
    ) -> list[CommitStatus]:
        """Statuses for a commit, most recent first."""
        data = self._request(
            "GET", f"/repos/{owner}/{repo}/commits/{ref}/statuses"
        )
        return [CommitStatus.model_validate(item) for item in data]

    def create_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        state: StatusState,
        context: str,
        description: str | None = None,
    ) -> CommitStatus:
        body: dict[str, Any] = {"state": state.value, "context": context}
        if description:
            body["description"] = description
        data = self._request(
            "POST", f"/repos/{owner}/{repo}/statuses/{sha}", json=body
        )
        return CommitStatus.model_validate(data)

    def create_comment(
        self, owner: str, repo: str, number: int, body: str
    ) -> None:
        self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            json={"body": body},
        )

    # GitHub App installations

    def get_repo_installation(self, owner: str, repo: str) -> int:
        """Installation id of the app calling with a JWT."""
        data = self._request("GET", f"/repos/{owner}/{repo}/installation")
        return data["id"]

    def create_installation_token(self, installation_id: int) -> str:
        data = self._request(
            "POST", f"/app/installations/{installation_id}/access_tokens"
        )
        return data["token"]


__all__ = ["GitHubClient"]
