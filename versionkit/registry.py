from __future__ import annotations

import difflib
import hashlib
import importlib.util
import inspect
import os
import re
import sys
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from versionkit.errors import SourceDirectoryError, SourceFileError
from versionkit.operations import FileOperation, Operation

OperationFactory = Callable[..., Operation]


def normalize_operation_name(name: str) -> str:
    """`ExifRestoration`, `exif-restoration` and `exif_restoration` are the same name."""

    if not isinstance(name, str) or not name.strip():
        raise ValueError("operation name must be a non-empty string")
    text = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name.strip())
    return text.replace("-", "_").lower()


@dataclass(frozen=True)
class OperationRef:
    name: str
    factory: OperationFactory
    source: str | None = None
    doc: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", normalize_operation_name(self.name))
        if not callable(self.factory):
            raise TypeError(f"Operation factory for {self.name} must be callable")


class OperationRegistry:
    """Explicit name -> factory mapping for operations.

    Registering a name that already exists shadows the earlier entry, so
    operations from directories added later take precedence over defaults.
    """

    def __init__(self, refs: Iterable[OperationRef] = ()):
        self._by_name: dict[str, OperationRef] = {}
        self._source_directories: list[str] = []
        for ref in refs:
            self.add(ref)

    def add(self, ref: OperationRef) -> OperationRef:
        self._by_name[ref.name] = ref
        return ref

    def register(
        self,
        name: str,
        factory: OperationFactory,
        *,
        source: str | None = None,
        doc: str | None = None,
    ) -> OperationRef:
        if doc is None:
            doc = _first_doc_line(factory)
        return self.add(OperationRef(name=name, factory=factory, source=source, doc=doc))

    @property
    def source_directories(self) -> tuple[str, ...]:
        """Directories in search order (most recently added first)."""

        return tuple(self._source_directories)

    def add_source_directory(self, directory: str | os.PathLike[str]) -> tuple[str, ...]:
        """Load every operation module in `directory` and register it.

        Each `<name>.py` module registers under `<name>`: its `OPERATION`
        factory if defined, else the single FileOperation subclass it defines.
        """

        path = os.path.abspath(os.path.expanduser(os.fspath(directory)))
        if path in self._source_directories:
            return self.source_directories
        if not os.path.isdir(path):
            raise SourceDirectoryError(directory=os.fspath(directory))

        self._source_directories.insert(0, path)
        for filename in sorted(os.listdir(path)):
            stem, ext = os.path.splitext(filename)
            if ext != ".py" or stem.startswith("_"):
                continue
            self._load_module(os.path.join(path, filename))
        return self.source_directories

    def available(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_name))

    def describe(self) -> tuple[dict[str, Any], ...]:
        return tuple(
            {"name": ref.name, "doc": ref.doc, "source": ref.source}
            for ref in sorted(self._by_name.values(), key=lambda r: r.name)
        )

    def get(self, name: str) -> OperationRef:
        key = normalize_operation_name(name)
        ref = self._by_name.get(key)
        if ref is None:
            locations = [*self._source_directories, "<registered operations>"]
            raise SourceFileError(name=name, locations=locations, suggestions=self.suggest(name))
        return ref

    def resolve(self, name: str) -> OperationFactory:
        return self.get(name).factory

    def create(self, name: str, **options: Any) -> Operation:
        operation = self.resolve(name)(**options)
        if not callable(getattr(operation, "run", None)):
            raise TypeError(f"Operation factory for {name} returned an object without run()")
        return operation

    def suggest(self, name: str, *, limit: int = 3) -> tuple[str, ...]:
        try:
            key = normalize_operation_name(name)
        except ValueError:
            return ()
        return tuple(difflib.get_close_matches(key, list(self.available()), n=limit))

    def _load_module(self, module_path: str) -> None:
        stem = os.path.splitext(os.path.basename(module_path))[0]
        digest = hashlib.sha1(module_path.encode("utf-8")).hexdigest()[:10]
        module_name = f"versionkit_operations_{stem}_{digest}"

        spec = importlib.util.spec_from_file_location(module_name, module_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load operation module: {module_path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise

        factory = getattr(module, "OPERATION", None)
        if factory is None:
            candidates = [
                obj
                for obj in vars(module).values()
                if inspect.isclass(obj)
                and issubclass(obj, FileOperation)
                and obj is not FileOperation
                and obj.__module__ == module_name
            ]
            if len(candidates) != 1:
                raise ValueError(
                    f"Operation module {module_path} must define OPERATION or exactly one "
                    f"FileOperation subclass (found {len(candidates)})"
                )
            factory = candidates[0]

        self.register(stem, factory, source=module_path)


def _first_doc_line(obj: Any) -> str | None:
    # Own docstring only; a subclass without one gets no doc.
    doc = getattr(obj, "__doc__", None)
    if not isinstance(doc, str) or not doc.strip():
        return None
    return inspect.cleandoc(doc).splitlines()[0]
