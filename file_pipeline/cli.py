from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from collections.abc import Sequence

from file_pipeline.foundation.config_io import load_config
from file_pipeline.foundation.logging_utils import (
    close_operational_logger,
    generate_run_id,
    setup_operational_logger,
)
from file_pipeline.framework.config import PipelineConfig, build_registry
from file_pipeline.framework.runner import run_files
from file_pipeline.operations import default_registry
from versionkit import FilePipelineError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="file-pipeline", add_help=True)
    sub = parser.add_subparsers(dest="command", required=True)

    apply = sub.add_parser("apply", help="Apply the configured pipeline to files")
    apply.add_argument("files", nargs="+", help="Files to process")
    apply.add_argument("--config", help="Config file (default: config/config.yaml or $FILE_PIPELINE_CONFIG)")
    apply.add_argument("--overwrite", action="store_true", help="Replace the original files")
    apply.add_argument("--no-finalize", action="store_true", help="Keep versions, do not write results")
    apply.add_argument("--audit-csv", help="Append the audit trail to this CSV file")
    apply.add_argument("--log-dir", help="Write the operational log to this directory")

    list_ops = sub.add_parser("list-operations", help="List available operations")
    list_ops.add_argument("--config", help="Also load operations from the config's source directories")

    return parser


def _load_pipeline_config(config_path: str | None) -> PipelineConfig:
    cfg, meta = load_config(config_path=config_path)
    base_dir = os.path.dirname(meta["paths"][0])
    return PipelineConfig.from_dict(cfg, base_dir=base_dir)


def _apply(args: argparse.Namespace) -> int:
    config = _load_pipeline_config(args.config)
    overrides = {}
    if args.overwrite:
        overrides["finalize_overwrite"] = True
    if args.no_finalize:
        overrides["finalize_enabled"] = False
    if args.audit_csv:
        overrides["audit_csv"] = os.path.abspath(args.audit_csv)
    if args.log_dir:
        overrides["log_dir"] = os.path.abspath(args.log_dir)
    config = dataclasses.replace(config, **overrides)

    run_id = generate_run_id()
    logger, _log_file = setup_operational_logger(config.log_dir, run_id)
    try:
        report = run_files(args.files, config, logger=logger)
    except FilePipelineError as exc:
        logger.error("Run %s aborted: %s", run_id, exc)
        return 1
    finally:
        close_operational_logger(logger)

    for run in report.files:
        if run.ok:
            print(f"ok      {run.source}" + (f" -> {run.output}" if run.output else ""))
        else:
            print(f"failed  {run.source}: {run.error}")
    return 1 if report.failed else 0


def _list_operations(args: argparse.Namespace) -> int:
    if args.config:
        registry = build_registry(_load_pipeline_config(args.config))
    else:
        registry = default_registry()

    for entry in registry.describe():
        doc = f" - {entry['doc']}" if entry["doc"] else ""
        print(f"{entry['name']}{doc}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    if args.command == "apply":
        return _apply(args)

    if args.command == "list-operations":
        return _list_operations(args)

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
