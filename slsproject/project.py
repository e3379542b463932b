"""A log service project with all of its management operations."""

from __future__ import annotations

from typing import Any

from slsproject.configs import ConfigOperations
from slsproject.stores import StoreOperations


class LogProject(StoreOperations, ConfigOperations):
    """A project: its logstores, machine groups, configurations and logging settings."""


def new_log_project(
    name: str, endpoint: str, access_key_id: str, access_key_secret: str
) -> LogProject:
    """A project reached with a fixed access key pair."""
    return LogProject(name, endpoint, access_key_id, access_key_secret)


def new_log_project_v2(name: str, endpoint: str, provider: Any) -> LogProject:
    """A project whose credentials come from ``provider``."""
    return LogProject(name, endpoint, credentials_provider=provider)