"""Handle command - process the webhook event of this invocation."""

from __future__ import annotations

import json

from pydantic import BaseModel

from mergecat.command.services import open_services, run_name
from mergecat.core.config import State
from mergecat.core.errors import ConfigurationError, MergecatError, SkipEvent
from mergecat.workflow.dispatch import EventDispatcher


def read_event(state: State) -> tuple[str, dict]:
    """Event name and decoded payload named by the configuration.

    Raises:
        ConfigurationError: If the name or payload file is missing or
            the payload is not valid JSON
    """
    event = state.config.event
    if not event.name:
        raise ConfigurationError("event name not set (GITHUB_EVENT_NAME)")
    if not event.path:
        raise ConfigurationError("event path not set (GITHUB_EVENT_PATH)")
    try:
        with open(event.path, encoding="utf-8") as f:
            return event.name, json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"cannot read event payload {event.path}: {e}"
        ) from e


class HandleCommand(BaseModel):
    """Process one webhook event: probe, classify and merge.

    Reads the event named by GITHUB_EVENT_NAME from GITHUB_EVENT_PATH.
    Exits 0 when pull requests were updated or nothing needed doing,
    1 on any failure.
    """

    async def run_workflow(self, state: State) -> int:
        """Run the event through the dispatcher.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=success or skip, 1=failure)
        """
        config = state.config
        runtime = state.runtime.handle
        logger = config.logger.setup(config.log_root, run_name("handle"))

        try:
            name, payload = read_event(state)
            runtime.event_name = name
            with open_services(config, logger) as (client, services):
                dispatcher = EventDispatcher(client, services)
                try:
                    runtime.updated = await dispatcher.dispatch(
                        name, payload
                    )
                finally:
                    runtime.outcomes = {
                        number: outcome.value
                        for number, outcome in dispatcher.outcomes.items()
                    }
        except SkipEvent as e:
            logger.info(e.message)
            return 0
        except MergecatError as e:
            logger.error(e.message, code=e.code)
            return 1
        except Exception as e:
            logger.exception("Unexpected error", error=str(e))
            return 1

        logger.info(f"Updated {runtime.updated} PR(s)")
        return 0
