# slsproject

A small client for one project on a log service. It needs only the
standard library. It manages logstores, machine groups, logtail collection
configurations and the project's service logging settings. It also has data
models for collection configurations (regex, JSON, delimiter, Apsara, plugin
and stream inputs) and helpers that fill in the fields the service requires.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `slsproject.project`: `LogProject`, plus `new_log_project` and `new_log_project_v2`.
- `slsproject.stores`: `StoreOperations`, the logstore and machine group calls.
- `slsproject.configs`: `ConfigOperations`, the calls for configurations, machine group binding and logging.
- `slsproject.transport`: `ProjectBase`, `HttpClient`, `HttpResponse`, `parse_endpoint`, `LogError`, `ClientError`.
- `slsproject.config`: the configuration models and the helpers for raw input details.
- `slsproject.plugin`: the plugin section models and the docker stdout and canal plugin details.
- `slsproject.logging`: `Logging` and `LoggingDetail`.

## Connecting to a project

```python
from slsproject.project import new_log_project

project = new_log_project("my-project", "log.example.com", "my-access-key-id", "secret")
```

The endpoint can be written with or without an `http://` or `https://`
scheme. Without a scheme, plain HTTP is used. The scheme is also plain HTTP
when `using_http=True` is passed to `LogProject`, or when
`slsproject.transport.GLOBAL_FORCE_USING_HTTP` is set. Requests go to
`<scheme><project>.<endpoint>`. When the endpoint starts with an IP address,
the requests are sent through that address as an HTTP proxy. If the project
was using the shared default client, it gets a client of its own for this.

Timeouts can be changed on the project. Both methods accept seconds or a
`datetime.timedelta` and return the project:

```python
project = project.with_request_timeout(10).with_retry_timeout(30)
```

`with_request_timeout` sets the timeout for a single HTTP request.
`with_retry_timeout` sets the total time one operation may take, retries
included. Responses with status 500, 502 or 503, and requests that fail to
connect, are retried with growing pauses. When the retry timeout runs out,
the call raises `ClientError`, whose message starts with
`stopped retrying err`.

`raw_request(method, uri, headers, body)` sends any request to the project
and returns an `HttpResponse`, which has `status`, `headers` with lower-case
names, and `body` as bytes.

## Logstores and machine groups

```python
project.create_log_store("app-logs", 7, 2, True, 16)
names = project.list_log_store()
store = project.get_log_store("app-logs")   # a dict; "logstoreName" is filled in
project.update_log_store("app-logs", 14, 2)

if not project.check_machine_group_exist("web-servers"):
    project.create_machine_group({"groupName": "web-servers", "machineIdentifyType": "userdefined",
                                  "machineList": ["host-a"]})

groups, total = project.list_machine_group(0, 100)   # a size of 0 or less means 500
project.delete_log_store("app-logs")
```

Logstore and machine group documents are plain dicts, or any object with a
`to_dict()` method. `create_log_store_v2` and `update_log_store_v2` send a
whole logstore document.

## Collection configurations

Models can be built with the service defaults already set:

```python
from slsproject.config import (
    LogConfig, OutputDetail, RegexConfigInputDetail, INPUT_TYPE_FILE, OUTPUT_TYPE_LOG_SERVICE,
)

detail = RegexConfigInputDetail.with_defaults(log_path="/var/log/app", file_pattern="*.log")
config = LogConfig(
    name="my-config",
    input_type=INPUT_TYPE_FILE,
    input_detail=detail,
    output_type=OUTPUT_TYPE_LOG_SERVICE,
    output_detail=OutputDetail(project_name="my-project", log_store_name="app-logs"),
)
project.create_config(config)
```

`get_config` returns a `LogConfig` whose `input_detail` is the raw dict the
service sent. The `convert_to_*` helpers turn that dict into the matching
model. Each returns `None` if the dict is of another kind or does not decode:

```python
from slsproject.config import convert_to_regex_config_input_detail

config = project.get_config("my-config")
regex_detail = convert_to_regex_config_input_detail(config.input_detail)
```

`get_config_string`, `create_config_string` and `update_config_string` work
with the configuration as JSON text.

Two helpers work on a raw detail dict. `add_necessary_input_config_field`
fills in every field the service requires that is missing.
`update_input_config_field` replaces a field that is already there:

```python
from slsproject.config import add_necessary_input_config_field, update_input_config_field

raw = {"logType": "json_log"}
add_necessary_input_config_field(raw)
update_input_config_field(raw, "maxDepth", 10)
```

`update_input_config_field` raises `NoConfigFieldError` when the key is
missing and `InvalidTypeError` when the detail is not a mapping.

Configurations are bound to machine groups with
`apply_config_to_machine_group(conf_name, group_name)` and
`remove_config_from_machine_group(conf_name, group_name)`. To list the
bindings, use `get_applied_machine_groups` and `get_applied_configs`.

## Plugin inputs

```python
from slsproject.plugin import (
    PLUGIN_INPUT_TYPE_DOCKER_STDOUT,
    LogConfigPluginInput,
    create_config_plugin_docker_stdout,
    create_plugin_input_item,
)
from slsproject.config import PluginLogConfigInputDetail

stdout = create_config_plugin_docker_stdout()
plugin = LogConfigPluginInput(inputs=[create_plugin_input_item(PLUGIN_INPUT_TYPE_DOCKER_STDOUT, stdout)])
detail = PluginLogConfigInputDetail.with_defaults(plugin_detail=plugin)
```

## Service logging

`create_logging`, `update_logging`, `get_logging` and `delete_logging`
manage the project's service logging settings. These settings are a
`slsproject.logging.Logging` holding `LoggingDetail` entries.

## Errors

When the service rejects a request, the call raises
`slsproject.transport.LogError`. It carries `code`, `message`, `http_code`
and `request_id`. When a request cannot be encoded, sent or read, or the
retries run out, the call raises `slsproject.transport.ClientError`.

## What this package does not do

- It does not sign requests. The access key pair, the security token and the
  credentials provider are stored on the project, but they are never turned
  into authorization headers. A service that requires signed requests will
  refuse the calls.
- It does not write or read log data, such as putting log groups, pulling
  logs or querying. It only manages the project's resources.
- It has no command-line tool.