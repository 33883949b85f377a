"""Services for Salesforce API interactions."""

from .salesforce import Connection, DeployError, SalesforceConnection, SalesforceError, get_connection
from .metadata import (
    PermissionSetNotFoundError,
    assign_permission_set,
    deploy_folder,
    verify_object,
)

__all__ = [
    "Connection",
    "SalesforceConnection",
    "SalesforceError",
    "get_connection",
    "DeployError",
    "PermissionSetNotFoundError",
    "assign_permission_set",
    "deploy_folder",
    "verify_object",
]
