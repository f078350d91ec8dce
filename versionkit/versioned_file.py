from __future__ import annotations

import logging
import os
import shutil
import uuid
from collections.abc import Mapping
from typing import Any, Callable

from versionkit.errors import MetadataReadError, MissingVersionFileError
from versionkit.history import History
from versionkit.results import CapturedDataTag, OperationDescriptor
from versionkit.validator import Validator
from versionkit.versions import VersionInfo, copy, move, unique_path

logger = logging.getLogger(__name__)

MetadataReader = Callable[[str], Mapping[str, Any]]
OperationInvoker = Callable[[str, str, str], Any]


class VersionedFile:
    """A file plus the chain of versions created from it in a working directory.

    The original is never touched until `finalize(overwrite=True)`. Versions
    live in `<basename>_versions` next to the original; the directory is
    created on first use and removed on finalize or rollback.

    Any failed admission rolls the whole instance back (working directory
    deleted, history cleared) before the error propagates, so the instance can
    be retried from scratch.
    """

    def __init__(
        self,
        file: str | os.PathLike[str],
        *,
        target_suffix: str | None = None,
        metadata_reader: MetadataReader | None = None,
    ):
        path = os.fspath(file)
        if not os.path.exists(path):
            raise MissingVersionFileError(file=path)

        self._original = os.path.abspath(path)
        self.basename = os.path.splitext(os.path.basename(path))[0]
        self.history = History()
        self.target_suffix = target_suffix or str(uuid.uuid4())
        self._directory: str | None = None
        self._metadata_reader = metadata_reader

    def __repr__(self) -> str:
        return f"VersionedFile(original={self._original!r}, versions={len(self.versions)})"

    def __lshift__(self, version_info: Any) -> "VersionedFile":
        return self.admit(version_info)

    @property
    def original(self) -> str:
        return self._original

    @property
    def original_dir(self) -> str:
        return os.path.dirname(self._original)

    @property
    def versions(self) -> list[str]:
        """Paths of all version files, oldest first (excluding the original)."""

        return [version for version in self.history.versions if version != self._original]

    @property
    def current(self) -> str:
        versions = self.versions
        return versions[-1] if versions else self._original

    @property
    def current_extension(self) -> str:
        return os.path.splitext(self.current)[1]

    @property
    def changed(self) -> bool:
        """True once a version exists (a clone counts as a change)."""

        return self.current != self._original

    @property
    def directory(self) -> str:
        if self._directory is None:
            self._directory = self._make_workdir()
        return self._directory

    def admit(
        self, version_info: Any, *, operation: OperationDescriptor | None = None
    ) -> "VersionedFile":
        """Record a new version, or roll back and re-raise if it is not valid."""

        try:
            info = VersionInfo.coerce(version_info, operation=operation)
            failed = info.result is not None and info.result.failure
            if info.path is not None and os.path.abspath(info.path) == self._original:
                # The original itself is never a version; record against current.
                info = VersionInfo(result=info.result)
            elif info.path is not None and failed:
                self._discard(info.path)
            elif info.path is not None:
                info = VersionInfo(path=self._relocate(info.path), result=info.result)

            info = Validator.check(info, directory=self.directory, fallback=self._original)
            version = os.path.abspath(info.path) if info.path is not None else self.current
            self.history[version] = info.result
        except Exception as exc:
            logger.warning("Rolling back %s (%s: %s)", self._original, type(exc).__name__, exc)
            self.reset()
            raise

        name = info.result.operation.name if info.result is not None else "<none>"
        logger.debug("Admitted version %s for %s (operation=%s)", version, self._original, name)
        return self

    def modify(
        self, invoker: OperationInvoker, *, operation: OperationDescriptor | None = None
    ) -> "VersionedFile":
        """Create a version by calling `invoker(current, directory, original)`.

        The invoker must return what `VersionInfo.coerce` accepts.
        """

        try:
            version_info = invoker(self.current, self.directory, self._original)
        except Exception:
            logger.warning("Rolling back %s after the operation raised", self._original)
            self.reset()
            raise
        return self.admit(version_info, operation=operation)

    def clone(self) -> "VersionedFile":
        """Add an identical copy of the current version as a new version."""

        try:
            target = unique_path(self.directory, self.current_extension)
            clone_file = copy(self.current, self.directory, os.path.basename(target))
        except Exception:
            self.reset()
            raise
        return self.admit(clone_file)

    touch = clone

    def finalize(self, *, overwrite: bool = False) -> str:
        """Write the current version next to the original and end the session.

        With `overwrite` the result replaces the original (same basename, the
        current extension); otherwise `target_suffix` is appended to the
        basename. The working directory and history are reset on every exit
        path. Returns the written path, which becomes the new `original`.
        """

        try:
            if overwrite and not self.changed:
                return self._original

            filename = self._replacing_target() if overwrite else self._preserving_target()
            current = self.current
            if overwrite:
                os.remove(self._original)
            self._original = os.path.abspath(copy(current, self.original_dir, filename))
            logger.info("Finalized %s -> %s", self.basename, self._original)
            return self._original
        finally:
            self.reset()

    def reset(self) -> None:
        """Delete the working directory and clear the history."""

        if self._directory is not None:
            shutil.rmtree(self._directory, ignore_errors=True)
            self._directory = None
        self.history.clear()

    def captured_data(self) -> list[tuple[OperationDescriptor, dict[Any, Any]]]:
        return self.history.captured_data()

    def captured_data_for(self, operation_name: str, **options: Any) -> list[dict[Any, Any]] | None:
        return self.history.captured_data_for(operation_name, **options)

    def captured_data_with(self, tag: CapturedDataTag | str) -> list[dict[Any, Any]]:
        return self.history.captured_data_with(tag)

    def log(self) -> list[tuple[str, dict[str, Any], list[Any]]]:
        return self.history.log()

    def recovered_metadata(self) -> dict[Any, Any] | None:
        """Merge all data captured as dropped metadata; None without history."""

        if self.history.empty:
            return None
        recovered: dict[Any, Any] = {}
        for data in self.captured_data_with(CapturedDataTag.DROPPED_EXIF_DATA):
            recovered.update(data)
        return recovered

    def metadata(self, for_version: str = "current") -> dict[str, Any]:
        """Descriptive metadata for `"current"`, `"original"` or a version path."""

        if for_version == "current":
            path = self.current
        elif for_version == "original":
            path = self._original
        else:
            path = os.path.abspath(for_version)
            if path != self._original and path not in self.versions:
                raise ValueError(f"Unknown version: {for_version}")

        if self._metadata_reader is None:
            raise MetadataReadError(f"No metadata reader configured (file={path})", file=path)
        try:
            return dict(self._metadata_reader(path))
        except MetadataReadError:
            raise
        except Exception as exc:
            raise MetadataReadError(file=path) from exc

    def _relocate(self, path: str) -> str:
        if not os.path.exists(path):
            return path
        if os.path.dirname(os.path.abspath(path)) == self.directory:
            return path
        logger.debug("Moving %s into %s", path, self.directory)
        return move(path, self.directory, os.path.basename(path))

    def _discard(self, path: str) -> None:
        """Remove partial output a failed operation left outside the working directory."""

        if not os.path.isfile(path):
            return
        if os.path.dirname(os.path.abspath(path)) == self._directory:
            return
        logger.debug("Removing partial output %s", path)
        os.remove(path)

    def _make_workdir(self) -> str:
        # os.mkdir fails if the directory exists; a clash is a fatal configuration error.
        dirname = os.path.join(self.original_dir, self.basename + "_versions")
        os.mkdir(dirname)
        return dirname

    def _preserving_target(self) -> str:
        return f"{self.basename}_{self.target_suffix}{self.current_extension}"

    def _replacing_target(self) -> str:
        return f"{self.basename}{self.current_extension}"
