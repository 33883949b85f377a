"""Log record types and their mapping to the Salesforce ``Log__c`` object."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

LogLevel = Literal["trace", "debug", "info", "warn", "error", "fatal"]

# Ordered by severity; nothing filters on it.
LOG_LEVELS: Tuple[str, ...] = ("trace", "debug", "info", "warn", "error", "fatal")

LOG_OBJECT = "Log__c"

# Public field -> (Salesforce field, max length). Keep in one place: the
# projection, both mappers and the truncation rules all derive from it.
LOG_FIELD_MAP: Dict[str, Tuple[str, Optional[int]]] = {
    "level": ("Level__c", None),
    "message": ("Message__c", 255),
    "stack": ("Stack__c", 32768),
    "system": ("System__c", 255),
    "user": ("User__c", 80),
}

LOG_FIELDS: List[str] = ["Id", *(name for name, _ in LOG_FIELD_MAP.values()), "CreatedDate"]


@dataclass
class BaseLog:
    """A log entry as supplied by the caller, before Salesforce assigns identity."""

    level: LogLevel
    message: str
    stack: Optional[str] = None
    system: Optional[str] = None
    user: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the entry, leaving out fields that were never set."""
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class Log(BaseLog):
    """A stored log entry read back from Salesforce."""

    id: str = ""
    timestamp: str = ""


BASE_LOG_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(BaseLog))


def merge_log(defaults: Mapping[str, Any], explicit: Mapping[str, Any]) -> Dict[str, Any]:
    """Resolve every log field to its explicit value, falling back to the default.

    A field counts as explicit when present and not ``None``. Keys outside the
    log fields are passed through from ``explicit`` so the dataclass
    constructor can reject them.
    """
    merged: Dict[str, Any] = {}
    for name in BASE_LOG_FIELDS:
        value = explicit.get(name)
        if value is None:
            value = defaults.get(name)
        if value is not None:
            merged[name] = value
    for name, value in explicit.items():
        if name not in merged and name not in BASE_LOG_FIELDS:
            merged[name] = value
    return merged


def to_sf_log(log: BaseLog) -> Dict[str, Any]:
    """Transform a caller log entry into the ``Log__c`` field map.

    Over-long values are cut to the field's length limit.
    """
    record: Dict[str, Any] = {}
    for name, (sf_name, max_length) in LOG_FIELD_MAP.items():
        value = getattr(log, name)
        if value is None:
            continue
        if max_length is not None:
            value = value[:max_length]
        record[sf_name] = value
    return record


def from_sf_log(record: Mapping[str, Any]) -> Log:
    """Transform a ``Log__c`` query row into a stored log entry."""
    values = {name: record.get(sf_name) for name, (sf_name, _) in LOG_FIELD_MAP.items()}
    return Log(id=record.get("Id"), timestamp=record.get("CreatedDate"), **values)
