"""Tabular audit trail of what each pipeline run did to each file."""

from __future__ import annotations

import json
import os
from typing import Any, Iterable

import pandas as pd

from versionkit import BatchOutcome, History

AUDIT_COLUMNS = ["file", "version", "operation", "options", "success", "log", "data"]


def _json_cell(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=str, ensure_ascii=False)


def _log_cell(entries: list[Any] | None) -> str | None:
    if entries is None:
        return None
    return " | ".join(
        f"{type(entry).__name__}: {entry}" if isinstance(entry, BaseException) else str(entry)
        for entry in entries
    )


def _row(**values: Any) -> dict[str, Any]:
    row: dict[str, Any] = dict.fromkeys(AUDIT_COLUMNS)
    row.update(values)
    return row


def history_rows(file: str, history: History) -> list[dict[str, Any]]:
    """One row per recorded result; a version without results (a clone) gets one empty row."""

    rows: list[dict[str, Any]] = []
    for version, results in history.to_list():
        if not results:
            rows.append(_row(file=file, version=version))
            continue
        for result in results:
            rows.append(
                _row(
                    file=file,
                    version=version,
                    operation=result.operation.name,
                    options=_json_cell(result.operation.options),
                    success=result.success,
                    log=_log_cell(result.log),
                    data=_json_cell(result.data),
                )
            )
    return rows


def failure_row(file: str, error: BaseException) -> dict[str, Any]:
    return _row(file=file, success=False, log=_log_cell([error]))


def audit_frame(outcomes: Iterable[BatchOutcome]) -> pd.DataFrame:
    """Rows for every batch outcome: the history of a successful file, or its error.

    Build this before finalizing; finalizing clears each file's history.
    """

    rows: list[dict[str, Any]] = []
    for outcome in outcomes:
        if outcome.ok:
            rows.extend(history_rows(outcome.file.original, outcome.file.history))
        else:
            rows.append(failure_row(outcome.file.original, outcome.error))
    return pd.DataFrame(rows, columns=AUDIT_COLUMNS)


def write_audit_csv(path: str, frame: pd.DataFrame) -> str:
    """Write (or append to) the audit CSV at `path`; the header is written once."""

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    exists = os.path.exists(path) and os.path.getsize(path) > 0
    frame.to_csv(path, mode="a" if exists else "w", header=not exists, index=False, encoding="utf-8")
    return path
