from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from versionkit.log_data import LogData, parse_log_data


class CapturedDataTag(str, Enum):
    """Why an operation captured data instead of applying it to the file."""

    NO_DATA = "no_data"
    # Metadata that was not preserved in the file (e.g. lost in a conversion).
    DROPPED_EXIF_DATA = "dropped_exif_data"
    # Metadata that was removed from the file on purpose.
    REDACTED_EXIF_DATA = "redacted_exif_data"


@dataclass(frozen=True)
class OperationDescriptor:
    """Snapshot of the operation that produced a result."""

    name: str
    options: dict[str, Any] = field(default_factory=dict)
    captured_data_tag: CapturedDataTag = CapturedDataTag.NO_DATA

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise TypeError("OperationDescriptor.name must be a non-empty string")
        object.__setattr__(self, "name", self.name.strip())
        if not isinstance(self.options, dict):
            raise TypeError(
                f"OperationDescriptor.options must be a dict (type={type(self.options).__name__})"
            )
        object.__setattr__(self, "options", dict(self.options))
        object.__setattr__(self, "captured_data_tag", CapturedDataTag(self.captured_data_tag))

    def matches(self, name: str, options: dict[str, Any]) -> bool:
        if self.name != name:
            return False
        return all(key in self.options and self.options[key] == value for key, value in options.items())


@dataclass(frozen=True, init=False)
class OperationResult:
    operation: OperationDescriptor
    success: bool
    log: list[Any] | None
    data: dict[Any, Any] | None

    def __init__(self, operation: OperationDescriptor, success: bool, log_data: Any = None):
        if not isinstance(operation, OperationDescriptor):
            raise TypeError(
                f"OperationResult.operation must be an OperationDescriptor (type={type(operation).__name__})"
            )
        log, data = parse_log_data(log_data)
        object.__setattr__(self, "operation", operation)
        object.__setattr__(self, "success", bool(success))
        object.__setattr__(self, "log", log)
        object.__setattr__(self, "data", data)

    @property
    def failure(self) -> bool:
        return not self.success

    def log_data(self) -> LogData:
        return LogData(self.log, self.data)
