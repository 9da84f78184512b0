"""Base classes for configuration and runtime models.

Everything mergecat loads from YAML/env/CLI derives from BaseConfig,
everything it mutates while handling an event derives from BaseState.
Both cascade close() to their children so a single `with` block on
the logger or the config releases every open sink.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Anything that owns a resource released by close()."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable fields on exit.

    A failing child does not stop the cascade; the error is reported
    on stderr because the logger may be the thing being closed.
    """

    def close(self):
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None or not isinstance(child, Closeable):
                continue
            try:
                child.close()
            except Exception as e:
                print(
                    f"Warning: Error closing {field_name}: {e}",
                    file=sys.stderr,
                )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections."""


class BaseState(BaseCloseable):
    """Marker base for runtime state sections."""


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
