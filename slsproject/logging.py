"""Service logging settings of a project: which internal logs go to which logstore."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

LOGGING_URI = "logging"


def _get(data: Mapping, key: str) -> Any:
    if key in data:
        return data[key]
    folded = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


def _string(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")
    return value


@dataclass
class LoggingDetail:
    """One kind of service log and the logstore that receives it."""

    type: str = ""
    logstore: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "logstore": self.logstore}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoggingDetail:
        if not isinstance(data, Mapping):
            raise TypeError(f"logging detail must be an object, got {type(data).__name__}")
        return cls(
            type=_string(_get(data, "type"), "type"),
            logstore=_string(_get(data, "logstore"), "logstore"),
        )


@dataclass
class Logging:
    """The logging settings of a project."""

    project: str = ""
    logging_details: list[LoggingDetail | None] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loggingProject": self.project,
            "loggingDetails": [
                None if detail is None else detail.to_dict() for detail in self.logging_details
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Logging:
        if not isinstance(data, Mapping):
            raise TypeError(f"logging must be an object, got {type(data).__name__}")
        raw_details = _get(data, "loggingDetails")
        if raw_details is None:
            raw_details = []
        if not isinstance(raw_details, list):
            raise TypeError("loggingDetails must be an array")
        return cls(
            project=_string(_get(data, "loggingProject"), "loggingProject"),
            logging_details=[
                None if entry is None else LoggingDetail.from_dict(entry) for entry in raw_details
            ],
        )