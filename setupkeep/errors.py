"""
Exception types and error logging for setupkeep.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class MalformedDataError(ValueError):
    """Stored text could not be decoded into the expected shape."""


class SetupLoadError(RuntimeError):
    """A stored setup is present but corrupt; the whole load is aborted."""

    def __init__(self, key: str, cause: Optional[Exception] = None):
        self.key = key
        message = f"Failed to load setup from {key!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


def _error_log_path() -> Path:
    """Resolve error log path, respecting SETUPKEEP_STORE_PATH."""
    store = os.environ.get("SETUPKEEP_STORE_PATH")
    if store:
        return Path(store) / "setupkeep-errors.log"
    return Path.home() / ".setupkeep" / "setupkeep-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Can't write error log; the caller still reports the error
    return log_path
