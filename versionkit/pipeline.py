from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from versionkit.operations import Operation, describe_operation
from versionkit.registry import OperationRegistry
from versionkit.results import OperationDescriptor, OperationResult
from versionkit.versioned_file import VersionedFile
from versionkit.versions import VersionInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchOutcome:
    """Result of one file in `Pipeline.batch_apply`; `error` is None on success."""

    file: VersionedFile
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Pipeline:
    """Ordered list of operations applied to VersionedFile instances.

    A pipeline holds no per-file state and can be applied to any number of
    files, one after another or concurrently via `batch_apply`.
    """

    def __init__(
        self,
        operations: Iterable[Operation] = (),
        *,
        registry: OperationRegistry | None = None,
    ):
        self._operations: list[Operation] = []
        self.registry = registry
        for operation in operations:
            self.append(operation)

    def __repr__(self) -> str:
        names = ", ".join(describe_operation(op).name for op in self._operations)
        return f"Pipeline([{names}])"

    def __len__(self) -> int:
        return len(self._operations)

    def __lshift__(self, operation: Operation) -> "Pipeline":
        return self.append(operation)

    @property
    def operations(self) -> tuple[Operation, ...]:
        return tuple(self._operations)

    @property
    def empty(self) -> bool:
        return not self._operations

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[tuple[str, dict[str, Any]]],
        *,
        registry: OperationRegistry,
    ) -> "Pipeline":
        """Build a pipeline from `(name, options)` pairs resolved through `registry`."""

        pipeline = cls(registry=registry)
        for name, options in definitions:
            pipeline.define_operation(name, **options)
        return pipeline

    def append(self, operation: Operation) -> "Pipeline":
        if not callable(getattr(operation, "run", None)):
            raise TypeError(
                f"File operations must implement a run method (type={type(operation).__name__})"
            )
        self._operations.append(operation)
        return self

    def define_operation(self, name: str, **options: Any) -> "Pipeline":
        if self.registry is None:
            raise ValueError("Pipeline has no operation registry to resolve names with")
        return self.append(self.registry.create(name, **options))

    def apply_to(self, versioned_file: VersionedFile) -> VersionedFile:
        """Run every operation in order on `versioned_file`; stop at the first failure."""

        logger.info(
            "Applying %d operation(s) to %s", len(self._operations), versioned_file.original
        )
        for index, operation in enumerate(self._operations, start=1):
            descriptor = describe_operation(operation)
            logger.info("Step %d/%d: %s", index, len(self._operations), descriptor.name)
            self.run(operation, versioned_file, descriptor=descriptor)
        return versioned_file

    def run(
        self,
        operation: Operation,
        versioned_file: VersionedFile,
        *,
        descriptor: OperationDescriptor | None = None,
    ) -> VersionedFile:
        """Apply a single operation; exceptions become failed results and roll back."""

        descriptor = descriptor or describe_operation(operation)

        def invoke(src_file: str, directory: str, original: str) -> Any:
            try:
                return operation.run(src_file, directory, original)
            except Exception as exc:
                logger.error("%s raised on %s (%s)", descriptor.name, src_file, exc)
                return VersionInfo(result=OperationResult(descriptor, False, exc))

        return versioned_file.modify(invoke, operation=descriptor)

    def batch_apply(
        self,
        versioned_files: Sequence[VersionedFile],
        *,
        max_workers: int | None = None,
    ) -> list[BatchOutcome]:
        """Apply the pipeline to several files concurrently, one task per file.

        Every task runs to completion; outcomes come back in input order and a
        failure is attributed only to the file that raised it.
        """

        files = list(versioned_files)
        seen: set[int] = set()
        for versioned_file in files:
            if id(versioned_file) in seen:
                raise ValueError(
                    f"The same VersionedFile was passed twice: {versioned_file.original}"
                )
            seen.add(id(versioned_file))
        if not files:
            return []

        workers = max_workers or len(files)
        logger.info("Batch applying pipeline to %d file(s) (max_workers=%d)", len(files), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.apply_to, versioned_file) for versioned_file in files]

        outcomes: list[BatchOutcome] = []
        for versioned_file, future in zip(files, futures):
            error = future.exception()
            if error is not None:
                logger.warning("Pipeline failed for %s: %s", versioned_file.original, error)
            outcomes.append(BatchOutcome(versioned_file, error))
        return outcomes
