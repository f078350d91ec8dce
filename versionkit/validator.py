from __future__ import annotations

import os

from versionkit.errors import (
    FailedModificationError,
    MisplacedVersionFileError,
    MissingVersionFileError,
)
from versionkit.results import OperationResult
from versionkit.versions import VersionInfo


class Validator:
    """Admission checks for a version produced by an operation.

    Checks run in a fixed order and each one is a hard gate:
      1. the operation did not report failure;
      2. non-modifying operations (no path) pass immediately;
      3. the version file exists;
      4. the version file sits directly in the working directory.
    """

    def __init__(
        self,
        path: str | None,
        result: OperationResult | None,
        directory: str,
        fallback: str,
    ):
        self.path = path
        self.result = result
        self.directory = directory
        self.fallback = fallback

    @classmethod
    def check(cls, info: VersionInfo, *, directory: str, fallback: str) -> VersionInfo:
        path, result = cls(info.path, info.result, directory, fallback).validate()
        return VersionInfo(path=path, result=result)

    @property
    def unmodified(self) -> bool:
        return self.path is None

    def validate(self) -> tuple[str | None, OperationResult | None]:
        self.validate_result()
        if self.unmodified:
            return None, self.result
        self.validate_file()
        self.validate_directory()
        return self.path, self.result

    def validate_result(self) -> None:
        if self.result is not None and self.result.failure:
            raise FailedModificationError(result=self.result, file=self.fallback)

    def validate_file(self) -> None:
        if self.unmodified or os.path.exists(self.path):
            return
        raise MissingVersionFileError(file=self.path)

    def validate_directory(self) -> None:
        if self.unmodified:
            return
        actual = os.path.dirname(os.path.abspath(self.path))
        if actual == os.path.abspath(self.directory):
            return
        raise MisplacedVersionFileError(file=self.path, directory=self.directory)
