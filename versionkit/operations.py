"""Operation contract and a base class for file operations.

An operation is any object with a `run(src_file, directory, original)` method.
It writes its output (if any) into `directory` and returns a `VersionInfo`
(or `None`, a path, or a `(path, result)` pair).

Subclass `FileOperation` and implement `operation(src_file, out_file, original)`
to get output naming, result construction and cleanup on errors for free.
"""

from __future__ import annotations

import copy
import logging
import os
from typing import Any, ClassVar, Protocol, runtime_checkable

from versionkit.results import CapturedDataTag, OperationDescriptor, OperationResult
from versionkit.versions import BasenameKind, VersionInfo, unique_path

logger = logging.getLogger(__name__)


@runtime_checkable
class Operation(Protocol):
    def run(self, src_file: str, directory: str, original: str | None = None) -> Any:
        ...


def describe_operation(operation: Any) -> OperationDescriptor:
    """Build a descriptor for any operation object, FileOperation or not."""

    describe = getattr(operation, "describe", None)
    if callable(describe):
        descriptor = describe()
        if isinstance(descriptor, OperationDescriptor):
            return descriptor

    options = getattr(operation, "options", None)
    return OperationDescriptor(
        name=str(getattr(operation, "name", None) or type(operation).__name__),
        options=dict(options) if isinstance(options, dict) else {},
        captured_data_tag=getattr(operation, "captured_data_tag", CapturedDataTag.NO_DATA),
    )


class FileOperation:
    """Base class for operations that derive one file from another.

    Class attributes subclasses may override:
      defaults: default options, merged with the constructor's keyword options.
      captured_data_tag: tag describing data returned by `operation`.
      target_extension: fixed extension of the output (e.g. ".tiff").
      modifies: False for operations that only inspect the file.
    """

    defaults: ClassVar[dict[str, Any]] = {}
    captured_data_tag: ClassVar[CapturedDataTag] = CapturedDataTag.NO_DATA
    target_extension: ClassVar[str | None] = None
    modifies: ClassVar[bool] = True

    def __init__(self, **options: Any):
        merged = copy.deepcopy(dict(self.defaults))
        merged.update(options)
        self.options: dict[str, Any] = merged

    def __repr__(self) -> str:
        return f"{self.name}({self.options!r})"

    @property
    def name(self) -> str:
        return type(self).__name__

    def describe(self) -> OperationDescriptor:
        return OperationDescriptor(
            name=self.name,
            options=copy.deepcopy(self.options),
            captured_data_tag=self.captured_data_tag,
        )

    def extension(self, src_file: str) -> str:
        return self.target_extension or os.path.splitext(src_file)[1]

    def target(self, directory: str, extension: str, kind: BasenameKind = "timestamp") -> str:
        return unique_path(directory, extension, kind)

    def results(self, success: bool, log_data: Any = None) -> OperationResult:
        return OperationResult(self.describe(), success, log_data)

    def success(self, log_data: Any = None) -> OperationResult:
        return self.results(True, log_data)

    def failure(self, log_data: Any = None) -> OperationResult:
        return self.results(False, log_data)

    def operation(self, src_file: str, out_file: str, original: str | None = None) -> Any:
        """Write the new version to `out_file`; return log messages and/or data."""

        raise NotImplementedError(f"{self.name} must implement operation()")

    def run(self, src_file: str, directory: str, original: str | None = None) -> VersionInfo:
        out_file = self.target(directory, self.extension(src_file))
        try:
            log_data = self.operation(src_file, out_file, original)
        except Exception as exc:
            logger.error("%s failed on %s (%s)", self.name, src_file, exc)
            if os.path.exists(out_file):
                os.remove(out_file)
            return VersionInfo(result=self.failure(exc))

        if not self.modifies:
            return VersionInfo(result=self.success(log_data))
        return VersionInfo(path=out_file, result=self.success(log_data))
