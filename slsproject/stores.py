"""Logstore and machine group operations of a project."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from slsproject.transport import ClientError, LogError, ProjectBase

_EMPTY_BODY_HEADERS = {"x-log-bodyrawsize": "0"}


def _lookup(document: Any, key: str) -> Any:
    """Find a key the way a JSON decoder matches struct fields: exact, then case-folded."""
    if not isinstance(document, Mapping):
        return None
    if key in document:
        return document[key]
    folded = key.casefold()
    for name, value in document.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


def _decode(body: bytes) -> Any:
    """Parse a response body; an unreadable body counts as empty."""
    if not body:
        return None
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None


def _string_list(value: Any) -> list[str]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return []


def _integer(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _encode(document: Any) -> bytes:
    """Serialise a document given as a mapping or as an object with ``to_dict``."""
    to_dict = getattr(document, "to_dict", None)
    payload = to_dict() if callable(to_dict) else document
    try:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as err:
        raise ClientError(f"cannot encode request body: {err}", cause=err) from err


def _name_of(document: Any, attribute: str, *keys: str) -> str:
    if isinstance(document, Mapping):
        for key in keys:
            value = document.get(key)
            if value:
                return str(value)
        return ""
    value = getattr(document, attribute, "")
    return "" if value is None else str(value)


class StoreOperations(ProjectBase):
    """Manage the logstores and machine groups of a project."""

    def _get(self, uri: str) -> Any:
        response = self._request("GET", uri, dict(_EMPTY_BODY_HEADERS), None)
        return _decode(response.body)

    def _delete(self, uri: str) -> None:
        self._request("DELETE", uri, dict(_EMPTY_BODY_HEADERS), None)

    def _send_document(self, method: str, uri: str, document: Any) -> None:
        body = _encode(document)
        headers = {
            "x-log-bodyrawsize": str(len(body)),
            "Content-Type": "application/json",
            "Accept-Encoding": "deflate",
        }
        self._request(method, uri, headers, body)

    def _exists(self, uri: str, missing_code: str) -> bool:
        try:
            self._request("GET", uri, dict(_EMPTY_BODY_HEADERS), None)
        except LogError as err:
            if err.code == missing_code:
                return False
            raise
        return True

    # --- logstores ---------------------------------------------------

    def list_log_store(self) -> list[str]:
        """Names of all logstores of the project."""
        return _string_list(_lookup(self._get("/logstores"), "logstores"))

    def list_log_store_v2(self, offset: int, size: int, telemetry_type: str) -> list[str]:
        """Names of one page of logstores of the given telemetry type."""
        uri = f"/logstores?offset={offset}&size={size}&telemetryType={telemetry_type}"
        return _string_list(_lookup(self._get(uri), "logstores"))

    def get_log_store(self, name: str) -> dict[str, Any]:
        """The logstore document of ``name``, with its name filled in."""
        document = self._get("/logstores/" + name)
        store = dict(document) if isinstance(document, Mapping) else {}
        store["logstoreName"] = name
        return store

    def create_log_store(
        self, name: str, ttl: int, shard_cnt: int, auto_split: bool, max_split_shard: int
    ) -> None:
        """Create a logstore keeping logs ``ttl`` days over ``shard_cnt`` shards."""
        self._send_document(
            "POST",
            "/logstores",
            {
                "logstoreName": name,
                "ttl": ttl,
                "shardCount": shard_cnt,
                "autoSplit": auto_split,
                "maxSplitShard": max_split_shard,
                "enable_tracking": False,
            },
        )

    def create_log_store_v2(self, logstore: Any) -> None:
        """Create a logstore from a full logstore document."""
        self._send_document("POST", "/logstores", logstore)

    def delete_log_store(self, name: str) -> None:
        self._delete("/logstores/" + name)

    def update_log_store(self, name: str, ttl: int, shard_cnt: int) -> None:
        """Change the retention and shard count of a logstore."""
        self._send_document(
            "PUT",
            "/logstores/" + name,
            {"logstoreName": name, "ttl": ttl, "shardCount": shard_cnt},
        )

    def update_log_store_v2(self, logstore: Any) -> None:
        """Replace a logstore with a full logstore document; its name cannot change."""
        name = _name_of(logstore, "name", "logstoreName")
        self._send_document("PUT", "/logstores/" + name, logstore)

    def check_logstore_exist(self, name: str) -> bool:
        return self._exists("/logstores/" + name, "LogStoreNotExist")

    # --- machine groups ----------------------------------------------

    def list_machine_group(self, offset: int, size: int) -> tuple[list[str], int]:
        """One page of machine group names and the total number of groups."""
        if size <= 0:
            size = 500
        document = self._get(f"/machinegroups?offset={offset}&size={size}")
        return (
            _string_list(_lookup(document, "machinegroups")),
            _integer(_lookup(document, "total")),
        )

    def check_machine_group_exist(self, name: str) -> bool:
        return self._exists("/machinegroups/" + name, "MachineGroupNotExist")

    def get_machine_group(self, name: str) -> dict[str, Any]:
        document = self._get("/machinegroups/" + name)
        return dict(document) if isinstance(document, Mapping) else {}

    def create_machine_group(self, machine_group: Any) -> None:
        self._send_document("POST", "/machinegroups", machine_group)

    def update_machine_group(self, machine_group: Any) -> None:
        name = _name_of(machine_group, "name", "groupName", "name")
        self._send_document("PUT", "/machinegroups/" + name, machine_group)

    def delete_machine_group(self, name: str) -> None:
        self._delete("/machinegroups/" + name)