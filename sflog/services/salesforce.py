"""Salesforce REST API connection used as the log store."""

from __future__ import annotations

import asyncio
import io
import json
import logging
import time
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class SalesforceError(Exception):
    """Raised when the Salesforce API reports a failure."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        errors: Optional[List[Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.errors = errors or []


class DeployError(SalesforceError):
    """Raised when a metadata deployment fails or does not finish in time."""


class Connection(Protocol):
    """Operations the logger needs from a Salesforce org."""

    async def insert(self, object_name: str, record: Mapping[str, Any]) -> Dict[str, Any]: ...

    async def query(self, soql: str) -> List[Dict[str, Any]]: ...

    async def describe(self, object_name: str) -> List[str]: ...

    async def deploy(self, folder: Union[str, Path]) -> Dict[str, Any]: ...

    async def identity(self) -> Dict[str, Any]: ...


def _error_from_response(response: httpx.Response) -> SalesforceError:
    """Decode the ``[{"errorCode", "message"}]`` error payload of a failed call."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        # OAuth endpoints answer {"error", "error_description"}
        if "error" in payload:
            payload = [{"errorCode": payload["error"], "message": payload.get("error_description", "")}]
        else:
            payload = [payload]

    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        first = payload[0]
        return SalesforceError(
            first.get("message") or response.reason_phrase,
            error_code=first.get("errorCode"),
            status_code=response.status_code,
            errors=payload,
        )

    return SalesforceError(
        f"HTTP {response.status_code}: {response.text or response.reason_phrase}",
        status_code=response.status_code,
    )


def zip_folder(folder: Union[str, Path]) -> bytes:
    """Pack a Metadata API source folder into an in-memory zip archive."""
    root = Path(folder)
    if not (root / "package.xml").is_file():
        raise FileNotFoundError(f"No package.xml in {root}")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(root.rglob("*")):
            if path.is_file():
                archive.write(path, path.relative_to(root).as_posix())
    return buffer.getvalue()


class SalesforceConnection:
    """Thin async client over the Salesforce REST and Metadata REST APIs."""

    def __init__(
        self,
        instance_url: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.instance_url = (instance_url or settings.instance_url).rstrip("/")
        self.access_token = access_token or settings.access_token
        self.api_version = api_version or settings.api_version
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._transport = transport

    @property
    def api_base(self) -> str:
        return f"{self.instance_url}/services/data/v{self.api_version}"

    def _client(self, base_url: Optional[str] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url or self.api_base,
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """Perform one API call and return the decoded JSON body."""
        async with self._client(base_url) as client:
            response = await client.request(method, path, **kwargs)
        if response.is_error:
            raise _error_from_response(response)
        if not response.content:
            return None
        return response.json()

    async def insert(self, object_name: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create one record.

        Args:
            object_name: API name of the sObject (e.g. "Log__c")
            record: Field values keyed by field API name

        Returns:
            The platform's save result: ``{"id", "success", "errors"}``

        Raises:
            SalesforceError: If the platform rejects the record
        """
        result = await self._request("POST", f"/sobjects/{object_name}/", json=dict(record))
        if not result.get("success", False):
            errors = result.get("errors") or []
            raise SalesforceError(
                f"Failed to insert {object_name}: {json.dumps(errors)}",
                errors=errors,
            )
        return result

    async def query(self, soql: str) -> List[Dict[str, Any]]:
        """Run a SOQL query and return the first page of records."""
        result = await self._request("GET", "/query", params={"q": soql})
        records = []
        for row in result.get("records", []):
            row = dict(row)
            row.pop("attributes", None)
            records.append(row)
        return records

    async def describe(self, object_name: str) -> List[str]:
        """Return the field API names defined on an sObject."""
        result = await self._request("GET", f"/sobjects/{object_name}/describe")
        return [field["name"] for field in result.get("fields", [])]

    async def identity(self) -> Dict[str, Any]:
        """Return the identity of the authenticated user."""
        return await self._request("GET", "/services/oauth2/userinfo", base_url=self.instance_url)

    async def deploy(self, folder: Union[str, Path]) -> Dict[str, Any]:
        """
        Deploy a Metadata API folder and wait for the deployment to finish.

        Args:
            folder: Directory holding ``package.xml`` and the component files

        Returns:
            The final ``deployResult`` payload (check its ``success`` flag)

        Raises:
            SalesforceError: If the deploy request itself is rejected
            DeployError: If the deployment does not finish within
                ``SF_DEPLOY_TIMEOUT``
        """
        options = {"deployOptions": {"singlePackage": True, "rollbackOnError": True}}
        files = {
            "json": (None, json.dumps(options), "application/json"),
            "file": ("deploy.zip", zip_folder(folder), "application/zip"),
        }
        started = await self._request("POST", "/metadata/deployRequest", files=files)
        deploy_id = started["id"]
        logger.debug("Deploy %s started from %s", deploy_id, folder)

        deadline = time.monotonic() + settings.deploy_timeout
        while True:
            status = await self._request(
                "GET",
                f"/metadata/deployRequest/{deploy_id}",
                params={"includeDetails": "true"},
            )
            result = status.get("deployResult", {})
            if result.get("done"):
                logger.debug("Deploy %s finished with status %s", deploy_id, result.get("status"))
                return result
            if time.monotonic() >= deadline:
                raise DeployError(f"Deploy {deploy_id} did not finish in time", error_code="TIMEOUT")
            await asyncio.sleep(settings.deploy_poll_interval)

    async def refresh_auth(self) -> None:
        """Exchange the configured refresh token for a new access token."""
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self._transport) as client:
            response = await client.post(
                f"{settings.login_url.rstrip('/')}/services/oauth2/token",
                data={
                    "grant_type": "refresh_token",
                    "client_id": settings.client_id,
                    "client_secret": settings.client_secret,
                    "refresh_token": settings.refresh_token,
                },
            )
        if response.is_error:
            raise _error_from_response(response)
        payload = response.json()
        self.access_token = payload["access_token"]
        if payload.get("instance_url"):
            self.instance_url = payload["instance_url"].rstrip("/")


async def get_connection(refresh: bool = True) -> SalesforceConnection:
    """
    Return a connection to the configured org.

    Args:
        refresh: Refresh the access token first when refresh credentials exist
    """
    conn = SalesforceConnection()
    if refresh and settings.can_refresh:
        await conn.refresh_auth()
    return conn
