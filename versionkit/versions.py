from __future__ import annotations

import os
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from versionkit.results import OperationDescriptor, OperationResult

BasenameKind = Literal["timestamp", "random"]


def new_basename(kind: BasenameKind = "timestamp") -> str:
    """Return a fresh file basename: a microsecond timestamp or a UUID."""

    if kind == "random":
        return str(uuid.uuid4())
    if kind == "timestamp":
        return datetime.now().strftime("%Y-%m-%dT%H-%M-%S.%f")
    raise ValueError(f"Invalid basename kind: {kind!r} (expected: timestamp, random)")


def unique_path(directory: str, extension: str, kind: BasenameKind = "timestamp") -> str:
    """Return a path in `directory` with a fresh basename that is not taken yet."""

    path = os.path.join(directory, new_basename(kind) + extension)
    while os.path.exists(path):
        path = os.path.join(directory, new_basename("random") + extension)
    return path


def copy(src: str, directory: str, filename: str) -> str:
    dest = os.path.join(directory, filename)
    shutil.copy(src, dest)
    return dest


def move(src: str, directory: str, filename: str) -> str:
    dest = os.path.join(directory, filename)
    shutil.move(src, dest)
    return dest


@dataclass(frozen=True)
class VersionInfo:
    """What an operation hands back: a new file (or None) and its result."""

    path: str | None = None
    result: OperationResult | None = None

    def __post_init__(self) -> None:
        if self.path is not None:
            if not isinstance(self.path, (str, os.PathLike)):
                raise TypeError(
                    f"VersionInfo.path must be a path or None (type={type(self.path).__name__})"
                )
            object.__setattr__(self, "path", os.fspath(self.path))
        if self.result is not None and not isinstance(self.result, OperationResult):
            raise TypeError(
                f"VersionInfo.result must be an OperationResult or None (type={type(self.result).__name__})"
            )

    @property
    def modified(self) -> bool:
        return self.path is not None

    @classmethod
    def coerce(cls, value: Any, *, operation: OperationDescriptor | None = None) -> "VersionInfo":
        """Accept the shapes operations return and build a VersionInfo.

        Accepted: a VersionInfo, None, a path, or a `(path_or_None, result)` pair.
        A result that is not an OperationResult is treated as raw log data of a
        successful run and requires `operation` to describe its producer.
        """

        if isinstance(value, VersionInfo):
            return value
        if value is None:
            return cls()
        if isinstance(value, (str, os.PathLike)):
            return cls(path=value)
        if isinstance(value, (list, tuple)):
            if not 1 <= len(value) <= 2:
                raise TypeError(
                    f"Version info must be (path, result); got a sequence of length {len(value)}"
                )
            path = value[0]
            result = value[1] if len(value) == 2 else None
            if result is not None and not isinstance(result, OperationResult):
                if operation is None:
                    raise TypeError(
                        "Version info carries raw log data but no operation descriptor was given"
                    )
                result = OperationResult(operation, True, result)
            return cls(path=path, result=result)

        raise TypeError(f"Unsupported version info (type={type(value).__name__})")
