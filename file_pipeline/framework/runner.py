from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from file_pipeline.framework.audit import AUDIT_COLUMNS, audit_frame, failure_row, write_audit_csv
from file_pipeline.framework.config import PipelineConfig, build_pipeline
from file_pipeline.framework.exif import image_metadata
from versionkit import MissingVersionFileError, OperationRegistry, VersionedFile


@dataclass(frozen=True)
class FileRun:
    source: str
    error: BaseException | None = None
    output: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RunReport:
    files: tuple[FileRun, ...]
    audit: pd.DataFrame

    @property
    def failed(self) -> tuple[FileRun, ...]:
        return tuple(run for run in self.files if not run.ok)


def run_files(
    paths: Iterable[str],
    config: PipelineConfig,
    *,
    logger: logging.Logger,
    registry: OperationRegistry | None = None,
) -> RunReport:
    """Apply the configured pipeline to every file, then finalize the successful ones.

    All inputs must exist before any work starts. A failing file does not stop
    the others; it is reported in the returned `RunReport`.
    """

    sources = [os.path.abspath(path) for path in paths]
    missing = [path for path in sources if not os.path.exists(path)]
    if missing:
        logger.error("Input file(s) not found: %s", ", ".join(missing))
        raise MissingVersionFileError(file=missing[0])

    pipeline = build_pipeline(config, registry)
    logger.info("Pipeline: %s", pipeline)

    files = [VersionedFile(path, metadata_reader=image_metadata) for path in sources]
    outcomes = pipeline.batch_apply(files, max_workers=config.max_workers)
    audit = audit_frame(outcomes)

    runs: list[FileRun] = []
    finalize_failures: list[dict] = []
    for source, outcome in zip(sources, outcomes):
        if not outcome.ok:
            logger.error("Failed: %s (%s)", source, outcome.error)
            runs.append(FileRun(source, error=outcome.error))
            continue

        output = None
        if config.finalize_enabled:
            try:
                output = outcome.file.finalize(overwrite=config.finalize_overwrite)
            except Exception as exc:
                logger.error("Finalizing %s failed (%s: %s)", source, type(exc).__name__, exc)
                runs.append(FileRun(source, error=exc))
                finalize_failures.append(failure_row(source, exc))
                continue
            logger.info("Wrote %s", output)
        else:
            logger.info("Processed %s (%d version(s), not finalized)", source, len(outcome.file.versions))
        runs.append(FileRun(source, output=output))

    if finalize_failures:
        audit = pd.concat([audit, pd.DataFrame(finalize_failures, columns=AUDIT_COLUMNS)], ignore_index=True)

    if config.audit_csv:
        write_audit_csv(config.audit_csv, audit)
        logger.info("Audit CSV: %s", config.audit_csv)

    return RunReport(files=tuple(runs), audit=audit)
