"""Helpers for checking and provisioning org metadata."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Union

from .salesforce import Connection, DeployError, SalesforceError

logger = logging.getLogger(__name__)


class PermissionSetNotFoundError(LookupError):
    """Raised when a permission set name does not exist in the org."""


def _soql_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


async def verify_object(conn: Connection, object_name: str, required_fields: Iterable[str]) -> bool:
    """
    Check that an sObject exists and defines every required field.

    Returns:
        False if the object or any field is missing. Errors other than
        ``NOT_FOUND`` propagate.
    """
    try:
        existing_fields = set(await conn.describe(object_name))
    except SalesforceError as exc:
        if exc.error_code == "NOT_FOUND":
            logger.debug("Object %s not found", object_name)
            return False
        raise

    missing_fields = [field for field in required_fields if field not in existing_fields]
    if missing_fields:
        logger.debug("Missing fields on %s object: %s", object_name, ", ".join(missing_fields))
        return False

    logger.debug("%s object verification successful", object_name)
    return True


async def deploy_folder(conn: Connection, folder: Union[str, Path]) -> Dict[str, Any]:
    """Deploy a metadata folder, raising ``DeployError`` unless it succeeds."""
    result = await conn.deploy(folder)
    if not result.get("success"):
        raise DeployError(
            f"Deploy failed: {json.dumps(result.get('details'))}",
            error_code=result.get("status"),
            errors=[result.get("details")],
        )
    return result


async def assign_permission_set(conn: Connection, permission_set_name: str) -> bool:
    """
    Assign a permission set to the current user.

    Args:
        conn: Org connection
        permission_set_name: Exact ``Name`` of the permission set

    Returns:
        True if assigned, False if it was already assigned

    Raises:
        PermissionSetNotFoundError: If no permission set has that name
        SalesforceError: If the assignment cannot be created
    """
    user_id = (await conn.identity())["user_id"]

    permission_sets = await conn.query(
        f"SELECT Id FROM PermissionSet WHERE Name = {_soql_literal(permission_set_name)}"
    )
    if not permission_sets:
        raise PermissionSetNotFoundError(f"Permission set '{permission_set_name}' not found")
    permission_set_id = permission_sets[0]["Id"]

    existing = await conn.query(
        "SELECT Id FROM PermissionSetAssignment "
        f"WHERE PermissionSetId = {_soql_literal(permission_set_id)} "
        f"AND AssigneeId = {_soql_literal(user_id)}"
    )
    if existing:
        logger.debug("Permission set '%s' is already assigned", permission_set_name)
        return False

    result = await conn.insert(
        "PermissionSetAssignment",
        {"PermissionSetId": permission_set_id, "AssigneeId": user_id},
    )
    if not result.get("success"):
        errors = result.get("errors") or []
        raise SalesforceError(
            f"Failed to assign permission set: {', '.join(map(str, errors))}",
            errors=errors,
        )

    logger.debug("Permission set '%s' successfully assigned", permission_set_name)
    return True
