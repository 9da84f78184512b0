"""Rollup command - re-run the rollup conflict check for one PR."""

from __future__ import annotations

from pydantic import BaseModel, Field

from mergecat.command.services import open_services, run_name
from mergecat.core.config import State
from mergecat.core.errors import ConfigurationError, MergecatError, SkipEvent


class RollupCommand(BaseModel):
    """Check whether a release pull request still rolls into main.

    Posts the failure status (and comment) exactly as the handle
    command would. Exits 0 when the head merges cleanly into main or
    the pull request is not into a release branch, 1 on a conflict or
    any other failure.
    """

    pr: int = Field(description="Number of the pull request to check")

    async def run_workflow(self, state: State) -> int:
        config = state.config
        logger = config.logger.setup(config.log_root, run_name("rollup"))

        try:
            slug = config.github.repository
            if not slug or "/" not in slug:
                raise ConfigurationError(
                    "repository must be 'owner/name' (GITHUB_REPOSITORY)"
                )
            owner, name = slug.split("/", 1)
            with open_services(config, logger) as (client, services):
                pr = client.get_pull(owner, name, self.pr)
                if not config.policy.is_release(pr.base.ref):
                    raise SkipEvent(
                        f"PR #{pr.number} targets '{pr.base.ref}', "
                        "not a release branch"
                    )
                conflict = services.rollup.check(pr)
        except SkipEvent as e:
            logger.info(e.message)
            return 0
        except MergecatError as e:
            logger.error(e.message, code=e.code)
            return 1
        except Exception as e:
            logger.exception("Unexpected error", error=str(e))
            return 1

        return 0 if conflict is None else 1
