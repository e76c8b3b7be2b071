"""Exceptions raised by fastapi-block.

Request handling never raises: a missing or malformed cookie and an absent
User-Agent header all resolve to a defined behaviour. The only failures are
configuration mistakes, which surface when a middleware is built.
"""

from typing import Any, Dict, Optional


class BlockError(ValueError):
    """Base class for every error raised by fastapi-block."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({rendered})"


class ConfigurationError(BlockError):
    """An option or configuration value is invalid."""

    def __init__(
        self,
        message: str = "Configuration error",
        *,
        field: Optional[str] = None,
        **details: Any,
    ):
        if field is not None:
            details["field"] = field
        super().__init__(message, **details)
        self.field = field
