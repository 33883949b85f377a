"""Store structured application logs in a Salesforce custom object."""

from .logger import Logger
from .models.log import BaseLog, Log, LOG_LEVELS
from .provisioning import SetupError
from .services.salesforce import SalesforceConnection, SalesforceError, get_connection

__all__ = [
    "Logger",
    "BaseLog",
    "Log",
    "LOG_LEVELS",
    "SetupError",
    "SalesforceConnection",
    "SalesforceError",
    "get_connection",
]
