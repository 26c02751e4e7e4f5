"""render-gate — Exception hierarchy.

The limiter and the once-logger never raise on bad input; these exceptions
belong to the configuration layer around them.

Hierarchy:
    RenderGateError
    └── ConfigurationError
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class RenderGateError(Exception):
    """Base exception for all render-gate errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


class ConfigurationError(RenderGateError):
    """A configuration file could not be read or has the wrong shape."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            f"Invalid configuration file '{path}': {reason}",
            context={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason
