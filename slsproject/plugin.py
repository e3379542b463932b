"""Plugin sections of a logtail configuration: inputs, processors and their details."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

PLUGIN_INPUT_TYPE_DOCKER_STDOUT = "service_docker_stdout"
PLUGIN_INPUT_TYPE_CANAL = "service_canal"


def _encode_detail(detail: Any) -> Any:
    to_dict = getattr(detail, "to_dict", None)
    return to_dict() if callable(to_dict) else detail


def _get(data: Mapping, key: str) -> Any:
    """Look a key up the way a JSON decoder matches struct fields: exact, then case-folded."""
    if key in data:
        return data[key]
    folded = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


@dataclass
class PluginInputItem:
    """One plugin entry: its type name and its type-specific detail."""

    type: str
    detail: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "detail": _encode_detail(self.detail)}


def create_plugin_input_item(t: str, detail: Any) -> PluginInputItem:
    """Build a plugin entry of type ``t`` carrying ``detail``."""
    return PluginInputItem(type=t, detail=detail)


def _item_to_dict(item: PluginInputItem | None) -> dict[str, Any] | None:
    return None if item is None else item.to_dict()


def _item_from_dict(raw: Any) -> PluginInputItem | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise TypeError(f"plugin item must be an object, got {type(raw).__name__}")
    item_type = _get(raw, "type")
    if item_type is None:
        item_type = ""
    if not isinstance(item_type, str):
        raise TypeError("plugin item type must be a string")
    return PluginInputItem(type=item_type, detail=_get(raw, "detail"))


def _items_from(raw: Any) -> list[PluginInputItem | None]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TypeError("plugin item list must be an array")
    return [_item_from_dict(entry) for entry in raw]


@dataclass
class LogConfigPluginInput:
    """The ``plugin`` section of a configuration."""

    inputs: list[PluginInputItem | None] = field(default_factory=list)
    processors: list[PluginInputItem | None] = field(default_factory=list)
    aggregators: list[PluginInputItem | None] = field(default_factory=list)
    flushers: list[PluginInputItem | None] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"inputs": [_item_to_dict(item) for item in self.inputs]}
        for key, items in (
            ("processors", self.processors),
            ("aggregators", self.aggregators),
            ("flushers", self.flushers),
        ):
            if items:
                result[key] = [_item_to_dict(item) for item in items]
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LogConfigPluginInput:
        if not isinstance(data, Mapping):
            raise TypeError(f"plugin section must be an object, got {type(data).__name__}")
        return cls(
            inputs=_items_from(_get(data, "inputs")),
            processors=_items_from(_get(data, "processors")),
            aggregators=_items_from(_get(data, "aggregators")),
            flushers=_items_from(_get(data, "flushers")),
        )


@dataclass
class ConfigPluginCanal:
    """Detail of the MySQL binlog (canal) input plugin."""

    host: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    flavor: str = ""
    server_id: int = 0
    include_tables: list[str] | None = None
    exclude_tables: list[str] | None = None
    start_bin_name: str = ""
    start_bin_log_pos: int = 0
    heart_beat_period: int = 0
    read_timeout: int = 0
    enable_ddl: bool = False
    enable_xid: bool = False
    enable_gtid: bool = False
    enable_insert: bool = False
    enable_update: bool = False
    enable_delete: bool = False
    text_to_string: bool = False
    start_from_begining: bool = False
    charset: str = ""

    _KEYS = (
        ("host", "Host"),
        ("port", "Port"),
        ("user", "User"),
        ("password", "Password"),
        ("flavor", "Flavor"),
        ("server_id", "ServerID"),
        ("include_tables", "IncludeTables"),
        ("exclude_tables", "ExcludeTables"),
        ("start_bin_name", "StartBinName"),
        ("start_bin_log_pos", "StartBinLogPos"),
        ("heart_beat_period", "HeartBeatPeriod"),
        ("read_timeout", "ReadTimeout"),
        ("enable_ddl", "EnableDDL"),
        ("enable_xid", "EnableXID"),
        ("enable_gtid", "EnableGTID"),
        ("enable_insert", "EnableInsert"),
        ("enable_update", "EnableUpdate"),
        ("enable_delete", "EnableDelete"),
        ("text_to_string", "TextToString"),
        ("start_from_begining", "StartFromBegining"),
        ("charset", "Charset"),
    )

    def to_dict(self) -> dict[str, Any]:
        result = {}
        for attr, key in self._KEYS:
            value = getattr(self, attr)
            result[key] = list(value) if isinstance(value, list) else value
        return result


def create_config_plugin_canal() -> ConfigPluginCanal:
    """A canal plugin detail with the service's usual defaults."""
    return ConfigPluginCanal(
        host="127.0.0.1",
        port=3306,
        user="root",
        flavor="mysql",
        server_id=1205,
        heart_beat_period=60,
        read_timeout=90,
        enable_gtid=True,
        enable_insert=True,
        enable_update=True,
        enable_delete=True,
        charset="utf8",
    )


@dataclass
class ConfigPluginDockerStdout:
    """Detail of the docker stdout/stderr input plugin."""

    include_label: dict[str, str] | None = None
    exclude_label: dict[str, str] | None = None
    include_env: dict[str, str] | None = None
    exclude_env: dict[str, str] | None = None
    flush_interval_ms: int = 0
    timeout_ms: int = 0
    begin_line_regex: str = ""
    begin_line_timeout_ms: int = 0
    begin_line_check_length: int = 0
    max_log_size: int = 0
    stdout: bool = False
    stderr: bool = False

    _KEYS = (
        ("include_label", "IncludeLabel"),
        ("exclude_label", "ExcludeLabel"),
        ("include_env", "IncludeEnv"),
        ("exclude_env", "ExcludeEnv"),
        ("flush_interval_ms", "FlushIntervalMs"),
        ("timeout_ms", "TimeoutMs"),
        ("begin_line_regex", "BeginLineRegex"),
        ("begin_line_timeout_ms", "BeginLineTimeoutMs"),
        ("begin_line_check_length", "BeginLineCheckLength"),
        ("max_log_size", "MaxLogSize"),
        ("stdout", "Stdout"),
        ("stderr", "Stderr"),
    )

    def to_dict(self) -> dict[str, Any]:
        result = {}
        for attr, key in self._KEYS:
            value = getattr(self, attr)
            result[key] = dict(value) if isinstance(value, dict) else value
        return result


def create_config_plugin_docker_stdout() -> ConfigPluginDockerStdout:
    """A docker stdout plugin detail with the service's usual defaults."""
    return ConfigPluginDockerStdout(
        flush_interval_ms=3000,
        timeout_ms=3000,
        stdout=True,
        stderr=True,
        begin_line_timeout_ms=3000,
        begin_line_check_length=10 * 1024,
        max_log_size=512 * 1024,
    )