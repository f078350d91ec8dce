"""Per-version ledger of operation results for a VersionedFile session."""

from __future__ import annotations

from typing import Any, Iterator

from versionkit.results import CapturedDataTag, OperationDescriptor, OperationResult


class History:
    """Maps version paths to the ordered results recorded for them.

    Insertion order is the chronological order in which versions were added.
    A version may hold several results (e.g. a non-modifying operation recorded
    against an existing version) or none at all (a clone).
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[OperationResult]] = {}

    def __getitem__(self, version: str) -> list[OperationResult] | None:
        entry = self._entries.get(version)
        return list(entry) if entry is not None else None

    def __setitem__(self, version: str, result: OperationResult | None) -> None:
        if result is not None and not isinstance(result, OperationResult):
            raise TypeError(
                f"History entries must be OperationResult or None (type={type(result).__name__})"
            )
        entry = self._entries.setdefault(version, [])
        if result is not None:
            entry.append(result)

    def __contains__(self, version: object) -> bool:
        return version in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def empty(self) -> bool:
        return not self._entries

    @property
    def versions(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def results(self) -> list[OperationResult]:
        return [result for entry in self._entries.values() for result in entry]

    def to_list(self) -> list[tuple[str, list[OperationResult]]]:
        return [(version, list(entry)) for version, entry in self._entries.items()]

    def captured_data(self) -> list[tuple[OperationDescriptor, dict[Any, Any]]]:
        return [
            (result.operation, result.data)
            for result in self.results()
            if result.data is not None
        ]

    def captured_data_for(self, operation_name: str, **options: Any) -> list[dict[Any, Any]] | None:
        """Data captured by `operation_name`, optionally narrowed by its options.

        Returns None when no versions have been recorded at all.
        """

        if self.empty:
            return None
        return [
            data
            for operation, data in self.captured_data()
            if operation.matches(operation_name, options)
        ]

    def captured_data_with(self, tag: CapturedDataTag | str) -> list[dict[Any, Any]]:
        return [data for operation, data in self.captured_data() if operation.captured_data_tag == tag]

    def log(self) -> list[tuple[str, dict[str, Any], list[Any]]]:
        return [
            (result.operation.name, dict(result.operation.options), list(result.log))
            for result in self.results()
            if result.log is not None
        ]
