"""Logtail configuration, machine group binding and service logging operations of a project."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from slsproject.config import LogConfig
from slsproject.logging import LOGGING_URI, Logging
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


def _config_name(config: Any) -> str:
    if isinstance(config, Mapping):
        value = config.get("configName")
    else:
        value = getattr(config, "name", "")
    return "" if value is None else str(value)


class ConfigOperations(ProjectBase):
    """Manage logtail configurations, their machine groups and service logging."""

    def _get(self, uri: str) -> bytes:
        return self._request("GET", uri, dict(_EMPTY_BODY_HEADERS), None).body

    def _without_body(self, method: str, uri: str) -> None:
        self._request(method, uri, dict(_EMPTY_BODY_HEADERS), None)

    def _send_bytes(self, method: str, uri: str, body: bytes) -> None:
        headers = {
            "x-log-bodyrawsize": str(len(body)),
            "Content-Type": "application/json",
            "Accept-Encoding": "deflate",
        }
        self._request(method, uri, headers, body)

    # --- configurations ----------------------------------------------

    def list_config(self, offset: int, size: int) -> tuple[list[str], int]:
        """One page of configuration names and the total number of configurations."""
        if size <= 0:
            size = 100
        document = _decode(self._get(f"/configs?offset={offset}&size={size}"))
        return _string_list(_lookup(document, "configs")), _integer(_lookup(document, "total"))

    def check_config_exist(self, name: str) -> bool:
        try:
            self._without_body("GET", "/configs/" + name)
        except LogError as err:
            if err.code == "ConfigNotExist":
                return False
            raise
        return True

    def get_config(self, name: str) -> LogConfig:
        """The configuration ``name``; its input detail stays a raw mapping."""
        document = _decode(self._get("/configs/" + name))
        if not isinstance(document, Mapping):
            return LogConfig()
        try:
            return LogConfig.from_dict(document)
        except (TypeError, ValueError) as err:
            raise ClientError(f"cannot read configuration {name}: {err}", cause=err) from err

    def update_config(self, config: Any) -> None:
        self._send_bytes("PUT", "/configs/" + _config_name(config), _encode(config))

    def create_config(self, config: Any) -> None:
        self._send_bytes("POST", "/configs", _encode(config))

    def get_config_string(self, name: str) -> str:
        """The configuration ``name`` as the JSON text the service returned."""
        return self._get("/configs/" + name).decode("utf-8", errors="replace")

    def update_config_string(self, config_name: str, config: str) -> None:
        self._send_bytes("PUT", "/configs/" + config_name, config.encode("utf-8"))

    def create_config_string(self, config: str) -> None:
        self._send_bytes("POST", "/configs", config.encode("utf-8"))

    def delete_config(self, name: str) -> None:
        self._without_body("DELETE", "/configs/" + name)

    # --- binding to machine groups -------------------------------------

    def get_applied_machine_groups(self, conf_name: str) -> list[str]:
        document = _decode(self._get(f"/configs/{conf_name}/machinegroups"))
        return _string_list(_lookup(document, "machinegroups"))

    def get_applied_configs(self, group_name: str) -> list[str]:
        document = _decode(self._get(f"/machinegroups/{group_name}/configs"))
        return _string_list(_lookup(document, "configs"))

    def apply_config_to_machine_group(self, conf_name: str, group_name: str) -> None:
        self._without_body("PUT", f"/machinegroups/{group_name}/configs/{conf_name}")

    def remove_config_from_machine_group(self, conf_name: str, group_name: str) -> None:
        self._without_body("DELETE", f"/machinegroups/{group_name}/configs/{conf_name}")

    # --- service logging -----------------------------------------------

    def create_logging(self, detail: Logging | Mapping[str, Any]) -> None:
        self._send_bytes("POST", f"/{LOGGING_URI}", _encode(detail))

    def update_logging(self, detail: Logging | Mapping[str, Any]) -> None:
        self._send_bytes("PUT", f"/{LOGGING_URI}", _encode(detail))

    def get_logging(self) -> Logging:
        document = _decode(self._get(f"/{LOGGING_URI}"))
        if not isinstance(document, Mapping):
            return Logging()
        try:
            return Logging.from_dict(document)
        except (TypeError, ValueError) as err:
            raise ClientError(f"cannot read logging settings: {err}", cause=err) from err

    def delete_logging(self) -> None:
        self._without_body("DELETE", f"/{LOGGING_URI}")