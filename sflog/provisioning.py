"""Ensure the ``Log__c`` object and its permission set exist in the org."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from .models.log import LOG_FIELDS, LOG_OBJECT
from .services.metadata import assign_permission_set, deploy_folder, verify_object
from .services.salesforce import Connection

# Metadata API source for the object, its fields and the permission set
FORCE_FOLDER = Path(__file__).resolve().parent / "force"
LOG_PERMISSION_SET = "Log"


class SetupError(RuntimeError):
    """Raised when the log object is still unusable after provisioning."""


async def verify_log(conn: Connection) -> bool:
    return await verify_object(conn, LOG_OBJECT, LOG_FIELDS)


async def deploy_log(conn: Connection) -> Dict[str, Any]:
    return await deploy_folder(conn, FORCE_FOLDER)


async def assign_permission_set_for_log(conn: Connection) -> bool:
    return await assign_permission_set(conn, LOG_PERMISSION_SET)


async def setup_log(conn: Connection) -> None:
    """Deploy and grant access to the log object unless it is already usable."""
    if await verify_log(conn):
        return
    await deploy_log(conn)
    await assign_permission_set_for_log(conn)
    if not await verify_log(conn):
        raise SetupError("Log object setup failed")
