"""
loguru wiring for the storage backends.

The package disables its own records on import (the loguru convention for libraries) and
never installs a sink: records go to whatever handlers the application configured. Each
provider owns a 'StoreLogger' that checks the provider's 'debug_enabled' flag and configured
level before every emit, so one provider's settings never leak into another's output.
"""

from loguru import logger

PACKAGE = "history_toolkit"
DEFAULT_LOG_LEVEL = "INFO"
_KNOWN_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def resolve_level(name: str | None) -> str:
    """Map a level name to a loguru level.

    An empty name means the default ('INFO'). An unknown name falls back to 'ERROR' so a
    misconfigured caller still sees failures but notices the missing detail.
    """
    if not name:
        return DEFAULT_LOG_LEVEL
    level = name.strip().upper()
    return level if level in _KNOWN_LEVELS else "ERROR"


class StoreLogger:
    """A loguru logger bound to one backend and gated by its provider's settings."""

    def __init__(self, backend: str, enabled: bool = False, level: str | None = None) -> None:
        self.backend = backend
        self.enabled = enabled
        self.level = resolve_level(level)
        self._threshold = logger.level(self.level).no
        self._logger = logger.bind(backend=backend)
        if enabled:
            logger.enable(PACKAGE)

    def is_enabled_for(self, level: str) -> bool:
        return self.enabled and logger.level(level).no >= self._threshold

    def debug(self, message: str) -> None:
        self._log("DEBUG", message)

    def info(self, message: str) -> None:
        self._log("INFO", message)

    def error(self, message: str) -> None:
        self._log("ERROR", message)

    def _log(self, level: str, message: str) -> None:
        if self.is_enabled_for(level):
            # depth=2 attributes the record to the store method that called debug/info/error.
            self._logger.opt(depth=2).log(level, f"[{self.backend}] {message}")


def preview(content: str, width: int = 50) -> str:
    return content if len(content) <= width else f"{content[:width]}..."
