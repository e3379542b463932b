import json

import pytest

from slsproject.plugin import (
    PLUGIN_INPUT_TYPE_CANAL,
    PLUGIN_INPUT_TYPE_DOCKER_STDOUT,
    ConfigPluginCanal,
    ConfigPluginDockerStdout,
    LogConfigPluginInput,
    PluginInputItem,
    create_config_plugin_canal,
    create_config_plugin_docker_stdout,
    create_plugin_input_item,
)


def test_canal_defaults():
    canal = create_config_plugin_canal()
    assert canal.host == "127.0.0.1"
    assert canal.port == 3306
    assert canal.user == "root"
    assert canal.flavor == "mysql"
    assert canal.server_id == 1205
    assert canal.heart_beat_period == 60
    assert canal.read_timeout == 90
    assert canal.enable_gtid and canal.enable_insert and canal.enable_update and canal.enable_delete
    assert not canal.enable_ddl
    assert canal.charset == "utf8"


def test_canal_to_dict_uses_struct_field_names():
    data = create_config_plugin_canal().to_dict()
    assert data["Host"] == "127.0.0.1"
    assert data["ServerID"] == 1205
    assert data["EnableDDL"] is False
    assert data["IncludeTables"] is None
    assert len(data) == 21


def test_canal_zero_value():
    canal = ConfigPluginCanal()
    assert canal.to_dict()["Port"] == 0


def test_docker_stdout_defaults():
    docker = create_config_plugin_docker_stdout()
    assert docker.flush_interval_ms == 3000
    assert docker.timeout_ms == 3000
    assert docker.stdout is True and docker.stderr is True
    assert docker.begin_line_timeout_ms == 3000
    assert docker.begin_line_check_length == 10 * 1024
    assert docker.max_log_size == 512 * 1024
    assert docker.include_env is None


def test_docker_stdout_to_dict():
    docker = create_config_plugin_docker_stdout()
    docker.include_env = {"x": "y", "dddd": ""}
    data = docker.to_dict()
    assert data["IncludeEnv"] == {"x": "y", "dddd": ""}
    assert data["ExcludeEnv"] is None
    assert data["MaxLogSize"] == docker.max_log_size


def test_create_plugin_input_item():
    detail = ConfigPluginDockerStdout()
    item = create_plugin_input_item(PLUGIN_INPUT_TYPE_DOCKER_STDOUT, detail)
    assert item.type == "service_docker_stdout"
    assert item.detail is detail
    assert item.to_dict() == {"type": "service_docker_stdout", "detail": detail.to_dict()}


def test_item_with_plain_detail():
    item = PluginInputItem(type=PLUGIN_INPUT_TYPE_CANAL, detail={"Host": "h"})
    assert item.to_dict() == {"type": "service_canal", "detail": {"Host": "h"}}


def test_plugin_input_omits_empty_sections():
    section = LogConfigPluginInput()
    assert section.to_dict() == {"inputs": []}


def test_plugin_input_round_trip():
    section = LogConfigPluginInput()
    section.inputs.append(
        create_plugin_input_item(PLUGIN_INPUT_TYPE_DOCKER_STDOUT, create_config_plugin_docker_stdout())
    )
    section.processors.append(PluginInputItem(type="processor_regex", detail={"Keys": ["a"]}))
    first = json.loads(json.dumps(section.to_dict()))
    restored = LogConfigPluginInput.from_dict(first)
    assert restored.to_dict() == first
    assert restored.inputs[0].type == PLUGIN_INPUT_TYPE_DOCKER_STDOUT
    assert restored.aggregators == []


def test_plugin_input_from_dict_matches_keys_case_insensitively():
    restored = LogConfigPluginInput.from_dict({"Inputs": [{"Type": "service_canal", "Detail": {}}]})
    assert restored.inputs == [PluginInputItem(type="service_canal", detail={})]


def test_plugin_input_from_dict_rejects_non_mapping():
    with pytest.raises(TypeError):
        LogConfigPluginInput.from_dict(["inputs"])


def test_plugin_input_from_dict_rejects_bad_item_type():
    with pytest.raises(TypeError):
        LogConfigPluginInput.from_dict({"inputs": [{"type": 5}]})