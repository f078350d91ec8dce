"""Error taxonomy for versioned files, pipelines and operation lookup."""

from __future__ import annotations

import os
import traceback
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from versionkit.results import OperationResult


class FilePipelineError(Exception):
    """Base class for all errors raised by versionkit."""


class SourceDirectoryError(FilePipelineError):
    """Raised when a configured operation source directory does not exist."""

    def __init__(self, msg: str | None = None, *, directory: str | None = None):
        self.directory = directory
        super().__init__(msg or f"The source directory {directory} does not exist")


class SourceFileError(FilePipelineError):
    """Raised when an operation cannot be found in any configured location."""

    def __init__(
        self,
        msg: str | None = None,
        *,
        name: str | None = None,
        locations: Iterable[str] = (),
        suggestions: Iterable[str] = (),
    ):
        self.name = name
        self.locations = tuple(locations)
        self.suggestions = tuple(suggestions)
        if msg is None:
            lines = [f"The operation {name} was not found. Searched in:"]
            lines.extend(f"\t- {location}" for location in self.locations)
            if self.suggestions:
                lines.append(f"Did you mean: {', '.join(self.suggestions)}?")
            msg = "\n".join(lines)
        super().__init__(msg)


class MissingVersionFileError(FilePipelineError):
    """Raised when a version is added but no file exists for it."""

    def __init__(self, msg: str | None = None, *, file: Any = None):
        self.file = file
        super().__init__(msg or f"File missing for version '{file}'")


class MisplacedVersionFileError(FilePipelineError):
    """Raised when a version file is not in the VersionedFile's working directory."""

    def __init__(
        self, msg: str | None = None, *, file: str | None = None, directory: str | None = None
    ):
        self.file = file
        self.directory = directory
        if msg is None:
            msg = (
                f"File {os.path.basename(file or '')} was expected in {directory}, "
                f"but was in {os.path.dirname(file or '')}."
            )
        super().__init__(msg)


class FailedModificationError(FilePipelineError):
    """Raised when an operation reports failure or raises while running."""

    def __init__(
        self,
        msg: str | None = None,
        *,
        result: "OperationResult | None" = None,
        file: str | None = None,
    ):
        self.result = result
        self.file = file
        super().__init__(msg or self._default_message())

    @property
    def original_errors(self) -> list[BaseException]:
        if self.result is None or not self.result.log:
            return []
        return [entry for entry in self.result.log if isinstance(entry, BaseException)]

    def _default_message(self) -> str:
        if self.result is None:
            return f"Operation failed (file={self.file})"

        operation = self.result.operation
        lines = [
            f"{operation.name} with options {operation.options} failed "
            f"(file={self.file}), log: {self.result.log}"
        ]
        for exc in self.original_errors:
            trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            lines.append(trace.rstrip())
        return "\n".join(lines)


class MetadataReadError(FilePipelineError):
    """Raised when descriptive metadata cannot be read for a version."""

    def __init__(self, msg: str | None = None, *, file: str | None = None):
        self.file = file
        super().__init__(msg or f"Error reading metadata for {file}")
