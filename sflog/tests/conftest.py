"""Shared fixtures: an in-memory stand-in for a Salesforce org."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from sflog.models.log import LOG_FIELDS, LOG_OBJECT
from sflog.services.salesforce import SalesforceError

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeConnection:
    """Records every call and answers the handful of queries the logger issues."""

    def __init__(self, provisioned: bool = True):
        self.user_id = "005000000000001AAA"
        self.objects: Dict[str, List[str]] = {}
        self.records: Dict[str, List[Dict[str, Any]]] = {}
        self.permission_sets: Dict[str, str] = {}
        self.assignments: set = set()
        self.calls: List[tuple] = []
        self.queries: List[str] = []

        self.deploy_result: Dict[str, Any] = {"done": True, "success": True, "status": "Succeeded"}
        self.deploy_fields: List[str] = list(LOG_FIELDS)
        self.deploy_creates_permission_set = True
        self.insert_error: Optional[Exception] = None
        self.describe_error: Optional[Exception] = None
        self.assignment_result: Optional[Dict[str, Any]] = None
        self._sequence = 0

        if provisioned:
            self.objects[LOG_OBJECT] = list(LOG_FIELDS)
            self.permission_sets["Log"] = "0PS000000000001AAA"
            self.assignments.add(("0PS000000000001AAA", self.user_id))

    def _next_id(self, prefix: str) -> str:
        self._sequence += 1
        return f"{prefix}{self._sequence:015d}"

    async def insert(self, object_name, record):
        self.calls.append(("insert", object_name, dict(record)))
        if self.insert_error is not None:
            raise self.insert_error

        if object_name == "PermissionSetAssignment":
            if self.assignment_result is not None:
                return self.assignment_result
            self.assignments.add((record["PermissionSetId"], record["AssigneeId"]))
            return {"id": self._next_id("0Pa"), "success": True, "errors": []}

        record_id = self._next_id("a00")
        created = _EPOCH + timedelta(seconds=self._sequence)
        row = dict(record)
        row["Id"] = record_id
        row["CreatedDate"] = created.strftime("%Y-%m-%dT%H:%M:%S.000+0000")
        self.records.setdefault(object_name, []).append(row)
        return {"id": record_id, "success": True, "errors": []}

    async def query(self, soql):
        self.queries.append(soql)
        object_name = re.search(r"FROM (\w+)", soql).group(1)

        if object_name == "PermissionSet":
            name = re.search(r"Name = '([^']*)'", soql).group(1)
            ps_id = self.permission_sets.get(name)
            return [{"Id": ps_id}] if ps_id else []

        if object_name == "PermissionSetAssignment":
            ps_id = re.search(r"PermissionSetId = '([^']*)'", soql).group(1)
            assignee = re.search(r"AssigneeId = '([^']*)'", soql).group(1)
            return [{"Id": "0Pa000000000001AAA"}] if (ps_id, assignee) in self.assignments else []

        selected = [name.strip() for name in re.search(r"SELECT (.+?) FROM", soql).group(1).split(",")]
        rows = sorted(self.records.get(object_name, []), key=lambda row: row["CreatedDate"], reverse=True)
        limit = re.search(r"LIMIT (\d+)", soql)
        if limit:
            rows = rows[: int(limit.group(1))]
        return [{name: row.get(name) for name in selected} for row in rows]

    async def describe(self, object_name):
        self.calls.append(("describe", object_name))
        if self.describe_error is not None:
            raise self.describe_error
        if object_name not in self.objects:
            raise SalesforceError(
                "The requested resource does not exist",
                error_code="NOT_FOUND",
                status_code=404,
            )
        return list(self.objects[object_name])

    async def deploy(self, folder):
        self.calls.append(("deploy", str(folder)))
        result = dict(self.deploy_result)
        if result.get("success"):
            self.objects[LOG_OBJECT] = list(self.deploy_fields)
            if self.deploy_creates_permission_set:
                self.permission_sets.setdefault("Log", "0PS000000000001AAA")
        return result

    async def identity(self):
        return {"user_id": self.user_id, "username": "admin@example.com"}

    def call_names(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_conn():
    """Org where the log object is already deployed and assigned."""
    return FakeConnection()


@pytest.fixture
def empty_org():
    """Org without the log object or its permission set."""
    return FakeConnection(provisioned=False)
