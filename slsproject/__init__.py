"""Project-level client for a log service: logstores, machine groups, collection configs and logging settings."""

__version__ = "0.1.0"

__all__ = ["config", "configs", "logging", "plugin", "project", "stores", "transport"]