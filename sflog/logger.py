"""Logger that stores its entries as Salesforce ``Log__c`` records."""

from __future__ import annotations

import getpass
import json
import socket
import traceback
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .config import settings
from .models.log import LOG_FIELDS, LOG_OBJECT, BaseLog, Log, from_sf_log, merge_log, to_sf_log
from .provisioning import setup_log
from .services.salesforce import Connection

# Longest cause chain flattened into a single entry
MAX_CAUSE_DEPTH = 10

NON_ERROR_PREFIX = "Non error thrown: "


def _next_cause(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__, chain=False)).rstrip("\n")


def describe_thrown(thrown: Any) -> Tuple[str, Optional[str]]:
    """
    Flatten any raised value into a ``(message, stack)`` pair.

    Exceptions contribute their message and traceback, followed by each
    exception in their cause chain. Other values are serialized as JSON and
    have no stack.
    """
    if not isinstance(thrown, BaseException):
        try:
            serialized = json.dumps(thrown, default=repr)
        except (TypeError, ValueError):
            # Non-string keys or circular references
            serialized = json.dumps(repr(thrown))
        return NON_ERROR_PREFIX + serialized, None

    message = str(thrown) or type(thrown).__name__
    stack = _format_stack(thrown)
    cause = _next_cause(thrown)
    depth = 0
    while isinstance(cause, BaseException) and depth < MAX_CAUSE_DEPTH:
        message += f" | Cause: {str(cause) or type(cause).__name__}"
        stack += f"\nCaused by: {_format_stack(cause)}"
        cause = _next_cause(cause)
        depth += 1
    return message, stack


class Logger:
    """Logger class using Salesforce as backend."""

    def __init__(
        self,
        conn: Connection,
        echo: Optional[bool] = None,
        system: Optional[str] = None,
        user: Optional[str] = None,
    ):
        self.conn = conn
        self.echo = settings.log_echo if echo is None else echo
        self.defaults: Dict[str, str] = {
            "system": system if system is not None else settings.log_system or socket.gethostname(),
            "user": user if user is not None else settings.log_user or getpass.getuser(),
        }

    async def setup(self) -> None:
        """Create the log object in Salesforce if it does not exist yet."""
        await setup_log(self.conn)

    async def log(self, log: Union[BaseLog, Mapping[str, Any]]) -> None:
        """Log a message of any level."""
        fields = log.to_dict() if isinstance(log, BaseLog) else log
        entry = BaseLog(**merge_log(self.defaults, fields))
        if self.echo:
            print(json.dumps(entry.to_dict()))
        await self.conn.insert(LOG_OBJECT, to_sf_log(entry))

    async def _log_level(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        await self.log({"level": level, "message": message, **fields})

    async def trace(self, message: str, **fields: Any) -> None:
        await self._log_level("trace", message, fields)

    async def debug(self, message: str, **fields: Any) -> None:
        await self._log_level("debug", message, fields)

    async def info(self, message: str, **fields: Any) -> None:
        await self._log_level("info", message, fields)

    async def warn(self, message: str, **fields: Any) -> None:
        await self._log_level("warn", message, fields)

    async def error(self, thrown: Any, **fields: Any) -> None:
        """Log an error; accepts an exception or any other raised value."""
        message, stack = describe_thrown(thrown)
        await self.log({"level": "error", "message": message, "stack": stack, **fields})

    async def fatal(self, thrown: Any, **fields: Any) -> None:
        await self.error(thrown, **{"level": "fatal", **fields})

    async def get_logs(self, limit: Optional[int] = None) -> List[Log]:
        """
        Fetch stored logs, newest first.

        Args:
            limit: Maximum number of entries; ``None`` or 0 fetches one full
                query page

        Returns:
            Stored entries in descending creation order
        """
        soql = " ".join(
            part
            for part in (
                f"SELECT {', '.join(LOG_FIELDS)}",
                f"FROM {LOG_OBJECT}",
                "ORDER BY CreatedDate DESC",
                f"LIMIT {int(limit)}" if limit else "",
            )
            if part
        )
        records = await self.conn.query(soql)
        return [from_sf_log(record) for record in records]
