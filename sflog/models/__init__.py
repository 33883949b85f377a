"""Log record models."""

from .log import (
    LOG_FIELD_MAP,
    LOG_FIELDS,
    LOG_LEVELS,
    LOG_OBJECT,
    LogLevel,
    BaseLog,
    Log,
    from_sf_log,
    merge_log,
    to_sf_log,
)

__all__ = [
    "LOG_FIELD_MAP",
    "LOG_FIELDS",
    "LOG_LEVELS",
    "LOG_OBJECT",
    "LogLevel",
    "BaseLog",
    "Log",
    "from_sf_log",
    "merge_log",
    "to_sf_log",
]
