"""Logtail configuration documents and the helpers that fill and convert them."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field, fields
from typing import Any, Callable

from slsproject.plugin import LogConfigPluginInput

INPUT_TYPE_SYSLOG = "syslog"
INPUT_TYPE_STREAMLOG = "streamlog"
INPUT_TYPE_PLUGIN = "plugin"
INPUT_TYPE_FILE = "file"

LOG_FILE_TYPE_APSARA_LOG = "apsara_log"
LOG_FILE_TYPE_REGEX_LOG = "common_reg_log"
LOG_FILE_TYPE_JSON_LOG = "json_log"
LOG_FILE_TYPE_DELIMITER_LOG = "delimiter_log"

OUTPUT_TYPE_LOG_SERVICE = "LogService"

MERGE_TYPE_TOPIC = "topic"
MERGE_TYPE_LOGSTORE = "logstore"

TOPIC_FORMAT_NONE = "none"
TOPIC_FORMAT_MACHINE_GROUP = "group_topic"


class NoConfigFieldError(LookupError):
    """The configuration has no field of the given name."""

    def __init__(self, key: str | None = None) -> None:
        super().__init__("no this config field")
        self.key = key


class InvalidTypeError(TypeError):
    """The configuration detail is not a plain mapping."""

    def __init__(self) -> None:
        super().__init__("invalid config type")


def is_valid_input_type(input_type: str) -> bool:
    """Whether ``input_type`` names a known input type."""
    return input_type in (INPUT_TYPE_SYSLOG, INPUT_TYPE_STREAMLOG, INPUT_TYPE_PLUGIN, INPUT_TYPE_FILE)


# --- JSON field decoding -------------------------------------------------


def _type_error(expected: str, value: Any) -> TypeError:
    return TypeError(f"expected {expected}, got {type(value).__name__}")


def _identity(value: Any) -> Any:
    return value


def _decode_str(value: Any) -> str:
    if not isinstance(value, str):
        raise _type_error("a string", value)
    return value


def _decode_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _type_error("a boolean", value)
    return value


def _decode_int(value: Any) -> int:
    if isinstance(value, bool):
        raise _type_error("an integer", value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _type_error("an integer", value)


def _decode_uint32(value: Any) -> int:
    number = _decode_int(value)
    if not 0 <= number <= 0xFFFFFFFF:
        raise ValueError(f"{number} does not fit an unsigned 32-bit integer")
    return number


def _decode_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise _type_error("an array", value)
    return ["" if item is None else _decode_str(item) for item in value]


def _decode_str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise _type_error("an object", value)
    return {_decode_str(k): "" if v is None else _decode_str(v) for k, v in value.items()}


def _decode_any_map(value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise _type_error("an object", value)
    return dict(value)


def _decode_sensitive_keys(value: Any) -> list[SensitiveKey]:
    if not isinstance(value, list):
        raise _type_error("an array", value)
    return [SensitiveKey() if item is None else SensitiveKey.from_dict(item) for item in value]


def _lookup(data: Mapping, key: str) -> tuple[bool, Any]:
    if key in data:
        return True, data[key]
    folded = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == folded:
            return True, value
    return False, None


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, bool, int, float)):
        return not value
    return False


def _encode(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, Mapping):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _json(
    key: str,
    default: Any = None,
    *,
    decode: Callable[[Any], Any] = _identity,
    omitempty: bool = False,
    factory: Callable[[], Any] | None = None,
) -> Any:
    metadata = {"json": key, "decode": decode, "omitempty": omitempty}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _record_to_dict(record: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if f.metadata["omitempty"] and _is_empty(value):
            continue
        result[f.metadata["json"]] = _encode(value)
    return result


def _record_from_dict(cls: type, data: Mapping[str, Any]) -> Any:
    if not isinstance(data, Mapping):
        raise _type_error("an object", data)
    values = {}
    for f in fields(cls):
        found, raw = _lookup(data, f.metadata["json"])
        if found and raw is not None:
            values[f.name] = f.metadata["decode"](raw)
    return cls(**values)


# --- records -------------------------------------------------------------


@dataclass(kw_only=True)
class InputDetail:
    """Legacy flat file input detail."""

    log_type: str = _json("logType", "", decode=_decode_str)
    log_path: str = _json("logPath", "", decode=_decode_str)
    file_pattern: str = _json("filePattern", "", decode=_decode_str)
    local_storage: bool = _json("localStorage", False, decode=_decode_bool)
    time_key: str = _json("timeKey", "", decode=_decode_str)
    time_format: str = _json("timeFormat", "", decode=_decode_str)
    log_begin_regex: str = _json("logBeginRegex", "", decode=_decode_str)
    regex: str = _json("regex", "", decode=_decode_str)
    keys: list[str] | None = _json("key", decode=_decode_str_list)
    filter_keys: list[str] | None = _json("filterKey", decode=_decode_str_list)
    filter_regex: list[str] | None = _json("filterRegex", decode=_decode_str_list)
    topic_format: str = _json("topicFormat", "", decode=_decode_str)
    separator: str = _json("separator", "", decode=_decode_str)
    auto_extend: bool = _json("autoExtend", False, decode=_decode_bool)

    def to_dict(self) -> dict[str, Any]:
        """The JSON document of this detail."""
        return _record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InputDetail:
        """Read a detail from its JSON document."""
        return _record_from_dict(cls, data)


@dataclass(kw_only=True)
class SensitiveKey:
    """A masking rule for a sensitive field."""

    key: str = _json("key", "", decode=_decode_str)
    type: str = _json("type", "", decode=_decode_str)
    regex_begin: str = _json("regex_begin", "", decode=_decode_str)
    regex_content: str = _json("regex_content", "", decode=_decode_str)
    all: bool = _json("all", False, decode=_decode_bool)
    const_string: str = _json("const", "", decode=_decode_str)

    def to_dict(self) -> dict[str, Any]:
        """The JSON document of this rule."""
        return _record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SensitiveKey:
        """Read a rule from its JSON document."""
        return _record_from_dict(cls, data)


@dataclass(kw_only=True)
class CommonConfigInputDetail:
    """Settings shared by every input detail."""

    local_storage: bool = _json("localStorage", False, decode=_decode_bool)
    filter_keys: list[str] | None = _json("filterKey", decode=_decode_str_list, omitempty=True)
    filter_regex: list[str] | None = _json("filterRegex", decode=_decode_str_list, omitempty=True)
    shard_hash_key: list[str] | None = _json("shardHashKey", decode=_decode_str_list, omitempty=True)
    enable_tag: bool = _json("enableTag", False, decode=_decode_bool)
    enable_raw_log: bool = _json("enableRawLog", False, decode=_decode_bool)
    max_send_rate: int = _json("maxSendRate", 0, decode=_decode_int)
    send_rate_expire: int = _json("sendRateExpire", 0, decode=_decode_int)
    sensitive_keys: list[SensitiveKey] | None = _json(
        "sensitive_keys", decode=_decode_sensitive_keys, omitempty=True
    )
    merge_type: str = _json("mergeType", "", decode=_decode_str, omitempty=True)
    delay_alarm_bytes: int = _json("delayAlarmBytes", 0, decode=_decode_int, omitempty=True)
    adjust_time_zone: bool = _json("adjustTimezone", False, decode=_decode_bool)
    log_time_zone: str = _json("logTimezone", "", decode=_decode_str, omitempty=True)
    priority: int = _json("priority", 0, decode=_decode_int, omitempty=True)

    @classmethod
    def _initial_values(cls) -> dict[str, Any]:
        return {
            "local_storage": True,
            "enable_tag": True,
            "max_send_rate": -1,
            "merge_type": MERGE_TYPE_TOPIC,
        }

    @classmethod
    def with_defaults(cls, **kwargs: Any):
        """A detail with the service defaults for its kind, overridden by ``kwargs``."""
        values = cls._initial_values()
        values.update(kwargs)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """The JSON document of this detail."""
        return _record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """Read a detail of this kind from its JSON document."""
        return _record_from_dict(cls, data)


@dataclass(kw_only=True)
class LocalFileConfigInputDetail(CommonConfigInputDetail):
    """Settings shared by every file input detail."""

    log_type: str = _json("logType", "", decode=_decode_str)
    log_path: str = _json("logPath", "", decode=_decode_str)
    file_pattern: str = _json("filePattern", "", decode=_decode_str)
    time_format: str = _json("timeFormat", "", decode=_decode_str)
    topic_format: str = _json("topicFormat", "", decode=_decode_str, omitempty=True)
    preserve: bool = _json("preserve", False, decode=_decode_bool)
    preserve_depth: int = _json("preserveDepth", 0, decode=_decode_int)
    file_encoding: str = _json("fileEncoding", "", decode=_decode_str, omitempty=True)
    discard_unmatch: bool = _json("discardUnmatch", False, decode=_decode_bool)
    max_depth: int = _json("maxDepth", 0, decode=_decode_int)
    tail_existed: bool = _json("tailExisted", False, decode=_decode_bool)
    discard_non_utf8: bool = _json("discardNonUtf8", False, decode=_decode_bool)
    delay_skip_bytes: int = _json("delaySkipBytes", 0, decode=_decode_int)
    is_docker_file: bool = _json("dockerFile", False, decode=_decode_bool)
    docker_include_label: dict[str, str] | None = _json(
        "dockerIncludeLabel", decode=_decode_str_map, omitempty=True
    )
    docker_exclude_label: dict[str, str] | None = _json(
        "dockerExcludeLabel", decode=_decode_str_map, omitempty=True
    )
    docker_include_env: dict[str, str] | None = _json(
        "dockerIncludeEnv", decode=_decode_str_map, omitempty=True
    )
    docker_exclude_env: dict[str, str] | None = _json(
        "dockerExcludeEnv", decode=_decode_str_map, omitempty=True
    )
    plugin_detail: dict[str, Any] | None = _json("plugin", decode=_decode_any_map, omitempty=True)
    advanced: dict[str, Any] | None = _json("advanced", decode=_decode_any_map, omitempty=True)

    @classmethod
    def _initial_values(cls) -> dict[str, Any]:
        values = super()._initial_values()
        values.update(
            file_encoding="utf8",
            max_depth=100,
            topic_format=TOPIC_FORMAT_NONE,
            preserve=True,
            discard_unmatch=True,
        )
        return values


@dataclass(kw_only=True)
class ApsaraLogConfigInputDetail(LocalFileConfigInputDetail):
    """Apsara format file input."""

    log_begin_regex: str = _json("logBeginRegex", "", decode=_decode_str)

    @classmethod
    def _initial_values(cls) -> dict[str, Any]:
        values = super()._initial_values()
        values.update(log_begin_regex=".*", log_type=LOG_FILE_TYPE_APSARA_LOG)
        return values


@dataclass(kw_only=True)
class RegexConfigInputDetail(LocalFileConfigInputDetail):
    """Regex parsed file input."""

    key: list[str] | None = _json("key", decode=_decode_str_list)
    log_begin_regex: str = _json("logBeginRegex", "", decode=_decode_str)
    regex: str = _json("regex", "", decode=_decode_str)
    customized_fields: str = _json("customizedFields", "", decode=_decode_str, omitempty=True)

    @classmethod
    def _initial_values(cls) -> dict[str, Any]:
        values = super()._initial_values()
        values.update(log_begin_regex=".*", regex="(.*)", log_type=LOG_FILE_TYPE_REGEX_LOG)
        return values


@dataclass(kw_only=True)
class JSONConfigInputDetail(LocalFileConfigInputDetail):
    """JSON lines file input."""

    time_key: str = _json("timeKey", "", decode=_decode_str)

    @classmethod
    def _initial_values(cls) -> dict[str, Any]:
        values = super()._initial_values()
        values.update(log_type=LOG_FILE_TYPE_JSON_LOG)
        return values


@dataclass(kw_only=True)
class DelimiterConfigInputDetail(LocalFileConfigInputDetail):
    """Delimiter separated file input."""

    separator: str = _json("separator", "", decode=_decode_str)
    quote: str = _json("quote", "", decode=_decode_str)
    key: list[str] | None = _json("key", decode=_decode_str_list)
    time_key: str = _json("timeKey", "", decode=_decode_str)
    auto_extend: bool = _json("autoExtend", False, decode=_decode_bool)
    accept_no_enough_keys: bool = _json("acceptNoEnoughKeys", False, decode=_decode_bool)

    @classmethod
    def _initial_values(cls) -> dict[str, Any]:
        values = super()._initial_values()
        values.update(quote="\u0001", auto_extend=True, log_type=LOG_FILE_TYPE_DELIMITER_LOG)
        return values


@dataclass(kw_only=True)
class PluginLogConfigInputDetail(CommonConfigInputDetail):
    """Plugin input such as docker stdout or binlog."""

    plugin_detail: LogConfigPluginInput = _json(
        "plugin", decode=LogConfigPluginInput.from_dict, factory=LogConfigPluginInput
    )


@dataclass(kw_only=True)
class StreamLogConfigInputDetail(CommonConfigInputDetail):
    """Syslog stream input."""

    tag: str = _json("tag", "", decode=_decode_str)


@dataclass(kw_only=True)
class OutputDetail:
    """Where collected logs are written."""

    project_name: str = _json("projectName", "", decode=_decode_str)
    log_store_name: str = _json("logstoreName", "", decode=_decode_str)
    compress_type: str = _json("compressType", "", decode=_decode_str)

    def to_dict(self) -> dict[str, Any]:
        """The JSON document of this output."""
        return _record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutputDetail:
        """Read an output from its JSON document."""
        return _record_from_dict(cls, data)


@dataclass(kw_only=True)
class LogConfig:
    """A logtail collection configuration."""

    name: str = _json("configName", "", decode=_decode_str)
    log_sample: str = _json("logSample", "", decode=_decode_str)
    input_type: str = _json("inputType", "", decode=_decode_str)
    input_detail: Any = _json("inputDetail")
    output_type: str = _json("outputType", "", decode=_decode_str)
    output_detail: OutputDetail = _json(
        "outputDetail", decode=OutputDetail.from_dict, factory=OutputDetail
    )
    create_time: int = _json("createTime", 0, decode=_decode_uint32, omitempty=True)
    last_modify_time: int = _json("lastModifyTime", 0, decode=_decode_uint32, omitempty=True)

    def to_dict(self) -> dict[str, Any]:
        """The JSON document of this configuration."""
        return _record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LogConfig:
        """Read a configuration from its JSON document."""
        return _record_from_dict(cls, data)


# --- conversion of raw input details --------------------------------------


def _convert(detail: Any, target: type, accept: Callable[[Mapping], bool]):
    if not isinstance(detail, Mapping) or not accept(detail):
        return None
    try:
        return target.from_dict(detail)
    except (TypeError, ValueError):
        return None


def _log_type_is(expected: str) -> Callable[[Mapping], bool]:
    return lambda detail: "logType" in detail and detail["logType"] == expected


def convert_to_input_detail(detail: Any) -> InputDetail | None:
    """Read a raw regex file detail as a legacy InputDetail, or None if it is not one."""
    return _convert(detail, InputDetail, _log_type_is(LOG_FILE_TYPE_REGEX_LOG))


def convert_to_apsara_log_config_input_detail(detail: Any) -> ApsaraLogConfigInputDetail | None:
    """Read a raw detail of log type apsara_log, or None."""
    return _convert(detail, ApsaraLogConfigInputDetail, _log_type_is(LOG_FILE_TYPE_APSARA_LOG))


def convert_to_regex_config_input_detail(detail: Any) -> RegexConfigInputDetail | None:
    """Read a raw detail of log type common_reg_log, or None."""
    return _convert(detail, RegexConfigInputDetail, _log_type_is(LOG_FILE_TYPE_REGEX_LOG))


def convert_to_json_config_input_detail(detail: Any) -> JSONConfigInputDetail | None:
    """Read a raw detail of log type json_log, or None."""
    return _convert(detail, JSONConfigInputDetail, _log_type_is(LOG_FILE_TYPE_JSON_LOG))


def convert_to_delimiter_config_input_detail(detail: Any) -> DelimiterConfigInputDetail | None:
    """Read a raw detail of log type delimiter_log, or None."""
    return _convert(
        detail, DelimiterConfigInputDetail, _log_type_is(LOG_FILE_TYPE_DELIMITER_LOG)
    )


def convert_to_plugin_log_config_input_detail(detail: Any) -> PluginLogConfigInputDetail | None:
    """Read a raw detail that has a plugin section and no log type, or None."""
    return _convert(
        detail,
        PluginLogConfigInputDetail,
        lambda d: "plugin" in d and "logType" not in d,
    )


def convert_to_stream_log_config_input_detail(detail: Any) -> StreamLogConfigInputDetail | None:
    """Read a raw detail that carries a tag, or None."""
    return _convert(detail, StreamLogConfigInputDetail, lambda d: "tag" in d)


def get_file_config_input_detail_type(detail: Any) -> str | None:
    """The log type of a raw file detail, or None if it has none."""
    if not isinstance(detail, Mapping) or "logType" not in detail:
        return None
    log_type = detail["logType"]
    if not isinstance(log_type, str):
        raise TypeError("logType must be a string")
    return log_type


# --- filling in required fields -------------------------------------------


def add_necessary_apsara_log_input_config_field(input_config_detail: MutableMapping) -> None:
    input_config_detail.setdefault("logBeginRegex", ".*")


def add_necessary_regex_log_input_config_field(input_config_detail: MutableMapping) -> None:
    input_config_detail.setdefault("logBeginRegex", ".*")
    input_config_detail.setdefault("regex", "(.*)")
    input_config_detail.setdefault("key", ["content"])


def add_necessary_json_log_input_config_field(input_config_detail: MutableMapping) -> None:
    input_config_detail.setdefault("timeKey", "")


def add_necessary_delimiter_log_input_config_field(input_config_detail: MutableMapping) -> None:
    input_config_detail.setdefault("quote", "\u0001")
    input_config_detail.setdefault("autoExtend", True)
    input_config_detail.setdefault("timeKey", "")


def add_necessary_local_file_input_config_field(input_config_detail: MutableMapping) -> None:
    input_config_detail.setdefault("fileEncoding", "utf8")
    input_config_detail.setdefault("maxDepth", 100)
    input_config_detail.setdefault("topicFormat", TOPIC_FORMAT_NONE)
    input_config_detail.setdefault("preserve", True)
    input_config_detail.setdefault("discardUnmatch", True)
    input_config_detail.setdefault("timeFormat", "")


_TYPE_SPECIFIC_FIELDS = {
    LOG_FILE_TYPE_APSARA_LOG: add_necessary_apsara_log_input_config_field,
    LOG_FILE_TYPE_REGEX_LOG: add_necessary_regex_log_input_config_field,
    LOG_FILE_TYPE_JSON_LOG: add_necessary_json_log_input_config_field,
    LOG_FILE_TYPE_DELIMITER_LOG: add_necessary_delimiter_log_input_config_field,
}


def add_necessary_input_config_field(input_config_detail: MutableMapping) -> None:
    """Fill in every field the service requires but the raw detail lacks."""
    input_config_detail.setdefault("localStorage", True)
    input_config_detail.setdefault("enableTag", True)
    input_config_detail.setdefault("maxSendRate", -1)
    input_config_detail.setdefault("mergeType", MERGE_TYPE_TOPIC)

    log_type = input_config_detail.get("logType")
    if isinstance(log_type, str):
        add_necessary_local_file_input_config_field(input_config_detail)
        fill = _TYPE_SPECIFIC_FIELDS.get(log_type)
        if fill is not None:
            fill(input_config_detail)


def update_input_config_field(detail: Any, key: str, val: Any) -> None:
    """Replace an existing field of a raw detail."""
    if not isinstance(detail, MutableMapping):
        raise InvalidTypeError()
    if key not in detail:
        raise NoConfigFieldError(key)
    detail[key] = val