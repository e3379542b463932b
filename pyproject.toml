[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slsproject"
version = "0.1.0"
description = "Project-level client for a log service: logstores, machine groups, collection configs and service logging."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "log service", "logstore", "logtail", "log collection", "client"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slsproject"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
