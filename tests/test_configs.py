import json
from urllib.parse import urlsplit

import pytest

from slsproject.config import (
    INPUT_TYPE_FILE,
    INPUT_TYPE_PLUGIN,
    LOG_FILE_TYPE_DELIMITER_LOG,
    LOG_FILE_TYPE_JSON_LOG,
    LOG_FILE_TYPE_REGEX_LOG,
    OUTPUT_TYPE_LOG_SERVICE,
    DelimiterConfigInputDetail,
    JSONConfigInputDetail,
    LogConfig,
    OutputDetail,
    PluginLogConfigInputDetail,
    RegexConfigInputDetail,
    convert_to_delimiter_config_input_detail,
    convert_to_json_config_input_detail,
    convert_to_plugin_log_config_input_detail,
    convert_to_regex_config_input_detail,
)
from slsproject.configs import ConfigOperations
from slsproject.logging import Logging, LoggingDetail
from slsproject.plugin import (
    PLUGIN_INPUT_TYPE_DOCKER_STDOUT,
    LogConfigPluginInput,
    create_config_plugin_docker_stdout,
    create_plugin_input_item,
)
from slsproject.transport import HttpClient, HttpResponse, LogError

BASE = "http://proj.cn-hangzhou.log.aliyuncs.com"
PROJECT = "proj"
LOGSTORE = "store"


def _ok(body=b""):
    return HttpResponse(status=200, headers={}, body=body)


def _error(status, code, message="failed"):
    payload = json.dumps({"errorCode": code, "errorMessage": message}).encode()
    return HttpResponse(status=status, headers={}, body=payload)


class ScriptedClient(HttpClient):
    def __init__(self, responses):
        super().__init__()
        self.responses = list(responses)
        self.requests = []

    def send(self, method, url, headers, body):
        self.requests.append((method, url, dict(headers), body))
        return self.responses.pop(0)


class ConfigServer(HttpClient):
    def __init__(self):
        super().__init__()
        self.configs = {}
        self.requests = []

    def send(self, method, url, headers, body):
        self.requests.append((method, url, dict(headers), body))
        path = urlsplit(url).path
        if path == "/configs" and method == "POST":
            self.configs[json.loads(body)["configName"]] = body
            return _ok()
        name = path[len("/configs/"):]
        if name not in self.configs:
            return _error(404, "ConfigNotExist")
        if method == "GET":
            return _ok(self.configs[name])
        if method == "PUT":
            self.configs[name] = body
            return _ok()
        if method == "DELETE":
            del self.configs[name]
            return _ok()
        return _error(400, "BadRequest")


def _ops(client):
    ops = ConfigOperations(PROJECT, "cn-hangzhou.log.aliyuncs.com", "id", "secret")
    ops.http_client = client
    ops.retry_timeout = 0.2
    return ops


def _log_config(name, detail, input_type=INPUT_TYPE_FILE, compress_type=""):
    return LogConfig(
        name=name,
        input_detail=detail,
        input_type=input_type,
        output_type=OUTPUT_TYPE_LOG_SERVICE,
        output_detail=OutputDetail(
            project_name=PROJECT, log_store_name=LOGSTORE, compress_type=compress_type
        ),
    )


def test_list_config_uses_default_size_and_reads_total():
    client = ScriptedClient([_ok(json.dumps({"total": 2, "configs": ["a", "b"]}).encode())])
    names, total = _ops(client).list_config(0, 0)
    assert names == ["a", "b"]
    assert total == 2
    assert client.requests[0][0] == "GET"
    assert client.requests[0][1] == BASE + "/configs?offset=0&size=100"


def test_check_config_exist():
    server = ConfigServer()
    ops = _ops(server)
    assert ops.check_config_exist("not-exist-config") is False
    ops.create_config(_log_config("c1", RegexConfigInputDetail.with_defaults()))
    assert ops.check_config_exist("c1") is True
    ops.delete_config("c1")
    assert ops.check_config_exist("c1") is False


def test_check_config_exist_other_error_raises():
    client = ScriptedClient([_error(401, "Unauthorized")])
    with pytest.raises(LogError) as info:
        _ops(client).check_config_exist("x")
    assert info.value.code == "Unauthorized"
    assert info.value.http_code == 401


def test_normal_file_config_round_trip():
    server = ConfigServer()
    ops = _ops(server)
    regex = RegexConfigInputDetail.with_defaults()
    config = _log_config("go-sdk-simple-file-config", regex, compress_type="lz4")
    regex.key = ["content"]
    regex.regex = "(.*)"
    regex.log_begin_regex = ".*"
    regex.log_path = "/usr/local/ilogtail"
    regex.file_pattern = "ilogtail.LOG"
    regex.discard_unmatch = False
    regex.is_docker_file = True
    regex.docker_include_env = {"ALIYUN_LOGTAIL_USER_DEFINED_ID": ""}
    assert regex.log_type == LOG_FILE_TYPE_REGEX_LOG
    ops.create_config(config)

    dest = ops.get_config("go-sdk-simple-file-config")
    assert dest.name == "go-sdk-simple-file-config"
    assert dest.input_type == INPUT_TYPE_FILE
    assert dest.output_detail.project_name == PROJECT
    assert dest.output_detail.log_store_name == LOGSTORE
    assert dest.output_detail.compress_type == "lz4"
    assert dest.output_type == OUTPUT_TYPE_LOG_SERVICE
    converted = convert_to_regex_config_input_detail(dest.input_detail)
    assert converted is not None
    assert converted.key == regex.key
    assert converted.time_format == regex.time_format
    assert converted.regex == regex.regex
    assert converted.log_begin_regex == regex.log_begin_regex
    assert converted.log_path == regex.log_path
    assert converted.log_type == regex.log_type
    assert converted.file_pattern == regex.file_pattern
    assert converted.docker_include_env == {"ALIYUN_LOGTAIL_USER_DEFINED_ID": ""}


def test_regex_file_config_round_trip():
    server = ConfigServer()
    ops = _ops(server)
    regex = RegexConfigInputDetail.with_defaults()
    config = _log_config("go-sdk-regex-file-config", regex)
    regex.discard_unmatch = False
    regex.key = ["logger", "time", "cluster", "hostname", "sr", "app", "workdir", "exe",
                 "corepath", "signature", "backtrace"]
    regex.regex = (
        "\\S*\\s+(\\S*)\\s+(\\S*\\s+\\S*)\\s+\\S*\\s+(\\S*)\\s+(\\S*)\\s+(\\S*)\\s+(\\S*)"
        "\\s+(\\S*)\\s+(\\S*)\\s+(\\S*)\\s+\\S*\\s+(\\S*)\\s*([^$]+)"
    )
    regex.time_format = "%Y/%m/%d %H:%M:%S"
    regex.log_begin_regex = "INFO core_dump_info_data .*"
    regex.log_path = "/cloud/log/tianji/TianjiClient#/core_dump_manager"
    regex.file_pattern = "core_dump_info_data.log*"
    regex.max_depth = 0
    ops.create_config(config)

    dest = ops.get_config("go-sdk-regex-file-config")
    converted = convert_to_regex_config_input_detail(dest.input_detail)
    assert converted is not None
    assert converted.key == regex.key
    assert converted.time_format == regex.time_format
    assert converted.regex == regex.regex
    assert converted.log_begin_regex == regex.log_begin_regex
    assert converted.log_path == regex.log_path
    assert converted.file_pattern == regex.file_pattern
    assert converted.max_depth == 0
    assert converted.discard_unmatch is False


def test_json_file_config_create_and_update():
    server = ConfigServer()
    ops = _ops(server)
    detail = JSONConfigInputDetail.with_defaults()
    config = _log_config("go-sdk-json-config", detail)
    detail.time_key = "key_time"
    detail.time_format = "%Y/%m/%d %H:%M:%S"
    detail.log_path = "/cloud/log/"
    detail.file_pattern = "access.log*"
    assert detail.log_type == LOG_FILE_TYPE_JSON_LOG
    ops.create_config(config)

    converted = convert_to_json_config_input_detail(ops.get_config("go-sdk-json-config").input_detail)
    assert converted.time_key == "key_time"
    assert converted.time_format == "%Y/%m/%d %H:%M:%S"
    assert converted.log_path == "/cloud/log/"
    assert converted.log_type == LOG_FILE_TYPE_JSON_LOG
    assert converted.file_pattern == "access.log*"

    detail.max_depth = 88
    ops.update_config(config)
    assert server.requests[-1][0] == "PUT"
    assert server.requests[-1][1] == BASE + "/configs/go-sdk-json-config"
    converted = convert_to_json_config_input_detail(ops.get_config("go-sdk-json-config").input_detail)
    assert converted.max_depth == 88


def test_delimiter_file_config_round_trip():
    server = ConfigServer()
    ops = _ops(server)
    detail = DelimiterConfigInputDetail.with_defaults()
    config = _log_config("go-sdk-delimiter-config", detail)
    detail.quote = "\u0001"
    detail.key = ["1", "2", "3", "4", "5"]
    detail.separator = '"'
    detail.time_key = "1"
    detail.time_format = "xxxx"
    detail.log_path = "/var/log/log"
    detail.file_pattern = "xxxx.log"
    assert detail.log_type == LOG_FILE_TYPE_DELIMITER_LOG
    ops.create_config(config)

    dest = ops.get_config("go-sdk-delimiter-config")
    converted = convert_to_delimiter_config_input_detail(dest.input_detail)
    assert converted.quote == "\u0001"
    assert converted.separator == '"'
    assert converted.key == ["1", "2", "3", "4", "5"]
    assert converted.time_key == "1"
    assert converted.time_format == "xxxx"
    assert converted.log_path == "/var/log/log"
    assert converted.log_type == LOG_FILE_TYPE_DELIMITER_LOG
    assert converted.file_pattern == "xxxx.log"


def test_plugin_config_round_trip():
    server = ConfigServer()
    ops = _ops(server)
    detail = PluginLogConfigInputDetail.with_defaults()
    config = _log_config("go-sdk-plugin-config", detail, input_type=INPUT_TYPE_PLUGIN)
    plugin = LogConfigPluginInput()
    docker = create_config_plugin_docker_stdout()
    docker.include_env = {"x": "y", "dddd": ""}
    docker.exclude_env = {"no_this_env": ""}
    plugin.inputs.append(create_plugin_input_item(PLUGIN_INPUT_TYPE_DOCKER_STDOUT, docker))
    detail.plugin_detail = plugin
    ops.create_config(config)

    dest = ops.get_config("go-sdk-plugin-config")
    assert dest.input_type == INPUT_TYPE_PLUGIN
    converted = convert_to_plugin_log_config_input_detail(dest.input_detail)
    assert converted is not None
    assert converted.plugin_detail.to_dict() == plugin.to_dict()


def test_get_config_missing_raises_log_error():
    with pytest.raises(LogError) as info:
        _ops(ConfigServer()).get_config("absent")
    assert info.value.code == "ConfigNotExist"
    assert info.value.http_code == 404


def test_config_strings():
    text = '{"configName":"c2","inputType":"file"}'
    client = ScriptedClient([_ok(), _ok(), _ok(text.encode())])
    ops = _ops(client)
    ops.create_config_string(text)
    ops.update_config_string("c2", text)
    assert ops.get_config_string("c2") == text
    post, put, get = client.requests
    assert post[0] == "POST" and post[1] == BASE + "/configs"
    assert post[3] == text.encode()
    assert post[2]["x-log-bodyrawsize"] == str(len(text))
    assert put[0] == "PUT" and put[1] == BASE + "/configs/c2"
    assert get[1] == BASE + "/configs/c2"


def test_applied_groups_and_configs():
    client = ScriptedClient([
        _ok(b'{"count":1,"machinegroups":["g1"]}'),
        _ok(b'{"count":2,"configs":["c1","c2"]}'),
    ])
    ops = _ops(client)
    assert ops.get_applied_machine_groups("c1") == ["g1"]
    assert ops.get_applied_configs("g1") == ["c1", "c2"]
    assert client.requests[0][1] == BASE + "/configs/c1/machinegroups"
    assert client.requests[1][1] == BASE + "/machinegroups/g1/configs"


def test_apply_and_remove_config():
    client = ScriptedClient([_ok(), _ok()])
    ops = _ops(client)
    ops.apply_config_to_machine_group("conf", "group")
    ops.remove_config_from_machine_group("conf", "group")
    assert [(m, u) for m, u, _, _ in client.requests] == [
        ("PUT", BASE + "/machinegroups/group/configs/conf"),
        ("DELETE", BASE + "/machinegroups/group/configs/conf"),
    ]
    assert client.requests[0][2]["x-log-bodyrawsize"] == "0"


def test_logging_operations():
    stored = {"loggingProject": "proj", "loggingDetails": [{"type": "operation_log", "logstore": "ops"}]}
    client = ScriptedClient([_ok(), _ok(), _ok(json.dumps(stored).encode()), _ok()])
    ops = _ops(client)
    detail = Logging(project="proj", logging_details=[LoggingDetail("operation_log", "ops")])
    ops.create_logging(detail)
    ops.update_logging(detail)
    fetched = ops.get_logging()
    ops.delete_logging()
    assert fetched == detail
    methods = [m for m, _, _, _ in client.requests]
    assert methods == ["POST", "PUT", "GET", "DELETE"]
    assert all(u == BASE + "/logging" for _, u, _, _ in client.requests)
    assert json.loads(client.requests[0][3]) == stored