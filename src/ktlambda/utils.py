from __future__ import annotations

import logging
import os
from typing import Optional

DEBUG_PY_TRACE_ENV = "KTLAMBDA_DEBUG_PY_TRACE"
LOG_LEVEL_ENV = "KTLAMBDA_LOG_LEVEL"

_TRUTHY_FLAGS = ("1", "true", "yes", "on")


def envvar_value_by_name(name: str) -> Optional[str]:
    """Get the current value of an env var by name, or None if missing."""
    return os.environ.get(name)


def env_flag(name: str) -> bool:
    value = envvar_value_by_name(name)
    return value is not None and value.strip().lower() in _TRUTHY_FLAGS


def debug_py_trace_enabled() -> bool:
    return env_flag(DEBUG_PY_TRACE_ENV)


def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        os.environ.pop(DEBUG_PY_TRACE_ENV, None)


def resolve_log_level(level: Optional[str] = None) -> int:
    """Level name from the argument, else the environment, else WARNING."""
    name = level or envvar_value_by_name(LOG_LEVEL_ENV) or "WARNING"
    resolved = logging.getLevelName(name.strip().upper())

    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {name}")

    return resolved


def configure_logging(level: Optional[str] = None) -> int:
    """Entry-point logging setup; the library itself never adds handlers."""
    resolved = resolve_log_level(level)
    logging.basicConfig(level=resolved, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("ktlambda").setLevel(resolved)
    return resolved
