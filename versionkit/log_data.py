"""Normalize loosely typed operation output into a canonical `(log, data)` pair.

Operations may return nothing, a message, an exception, a list of messages
and/or exceptions, a mapping of captured data, or a list mixing all of these.
`parse_log_data` classifies the raw value into one of the shapes below and
converts that shape into a `LogData` pair.

Rules for lists that contain nested lists or mappings:
  - the first mapping is the data; any later mapping stays in the log as an
    ordinary entry;
  - nested lists are spliced into the log at their position (their contents
    are not inspected again);
  - `None` elements are dropped, and an empty log becomes `None`.

Because nested lists are spliced verbatim, parsing an already canonical
`(log, data)` pair returns the same pair.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple, TypeAlias


class LogData(NamedTuple):
    log: list[Any] | None
    data: dict[Any, Any] | None


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Message:
    text: Any


@dataclass(frozen=True)
class Failure:
    error: BaseException


@dataclass(frozen=True)
class Log:
    entries: tuple[Any, ...]


@dataclass(frozen=True)
class Data:
    values: Mapping[Any, Any]


@dataclass(frozen=True)
class LogAndData:
    entries: tuple[Any, ...]
    values: Mapping[Any, Any] | None


RawShape: TypeAlias = Absent | Message | Failure | Log | Data | LogAndData


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def classify(raw: Any) -> RawShape:
    """Return the shape variant for a raw operation return value."""

    if isinstance(raw, (Absent, Message, Failure, Log, Data, LogAndData)):
        return raw
    if raw is None:
        return Absent()
    if isinstance(raw, Mapping):
        return Data(raw)
    if isinstance(raw, BaseException):
        return Failure(raw)
    if not _is_sequence(raw):
        return Message(raw)

    if not any(_is_sequence(item) or isinstance(item, Mapping) for item in raw):
        return Log(tuple(item for item in raw if item is not None))

    entries: list[Any] = []
    values: Mapping[Any, Any] | None = None
    for item in raw:
        if item is None:
            continue
        if isinstance(item, Mapping) and values is None:
            values = item
        elif _is_sequence(item):
            entries.extend(entry for entry in item if entry is not None)
        else:
            entries.append(item)
    return LogAndData(tuple(entries), values)


def to_log_data(shape: RawShape) -> LogData:
    if isinstance(shape, Absent):
        return LogData(None, None)
    if isinstance(shape, Message):
        return LogData([shape.text], None)
    if isinstance(shape, Failure):
        return LogData([shape.error], None)
    if isinstance(shape, Data):
        return LogData(None, dict(shape.values))
    if isinstance(shape, Log):
        return LogData(list(shape.entries) or None, None)
    if isinstance(shape, LogAndData):
        data = dict(shape.values) if shape.values is not None else None
        return LogData(list(shape.entries) or None, data)

    raise TypeError(f"Unhandled log data shape: {type(shape).__name__}")


def parse_log_data(raw: Any) -> LogData:
    return to_log_data(classify(raw))
