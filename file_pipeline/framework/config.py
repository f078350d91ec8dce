from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from file_pipeline.operations import default_registry
from versionkit import ConfigNamespace, OperationRegistry, Pipeline


@dataclass(frozen=True)
class OperationSpec:
    name: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Operation name must be a non-empty string")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "options", dict(self.options))


@dataclass(frozen=True)
class PipelineConfig:
    operations: tuple[OperationSpec, ...]
    source_directories: tuple[str, ...] = ()

    finalize_enabled: bool = True
    finalize_overwrite: bool = False

    max_workers: int | None = None

    log_dir: str | None = None
    audit_csv: str | None = None

    @staticmethod
    def from_dict(cfg: Mapping[str, Any], *, base_dir: str | None = None) -> "PipelineConfig":
        """
        Parse and validate configuration.

        Relative paths (source directories, log dir, audit csv) are resolved
        against `base_dir` when given.

        Raises:
            ValueError: on missing or unknown keys.
            TypeError: on values of the wrong type.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        def resolve(path: str | None) -> str | None:
            if path is None:
                return None
            expanded = os.path.expandvars(os.path.expanduser(path))
            if base_dir and not os.path.isabs(expanded):
                expanded = os.path.join(base_dir, expanded)
            return os.path.abspath(expanded)

        root = ConfigNamespace(cfg, path="")

        pipeline_ns = root.namespace("pipeline")
        source_directories = pipeline_ns.get_list_str(
            "source_directories", default=[], allow_empty=True
        )
        operations: list[OperationSpec] = []
        for idx, raw in enumerate(pipeline_ns.get_list_mapping("operations", allow_empty=True)):
            op_ns = ConfigNamespace(raw, path=f"pipeline.operations[{idx}]")
            operations.append(
                OperationSpec(
                    name=op_ns.get_str("name"),  # type: ignore[arg-type]
                    options=op_ns.get_mapping("options", default={}),
                )
            )
            op_ns.assert_consumed()

        finalize_ns = root.namespace("finalize", default={})
        finalize_enabled = finalize_ns.get_bool("enabled", default=True)
        finalize_overwrite = finalize_ns.get_bool("overwrite", default=False)

        batch_ns = root.namespace("batch", default={})
        max_workers = batch_ns.get_optional_int("max_workers", default=None, min_value=1)

        logging_ns = root.namespace("logging", default={})
        log_dir = logging_ns.get_str("log_dir", default=None)
        audit_csv = logging_ns.get_str("audit_csv", default=None)

        root.assert_consumed()

        return PipelineConfig(
            operations=tuple(operations),
            source_directories=tuple(resolve(path) for path in source_directories),  # type: ignore[misc]
            finalize_enabled=finalize_enabled,
            finalize_overwrite=finalize_overwrite,
            max_workers=max_workers,
            log_dir=resolve(log_dir),
            audit_csv=resolve(audit_csv),
        )

    def definitions(self) -> list[tuple[str, dict[str, Any]]]:
        return [(spec.name, dict(spec.options)) for spec in self.operations]


def build_registry(
    config: PipelineConfig, registry: OperationRegistry | None = None
) -> OperationRegistry:
    """Default operations plus every configured source directory (later ones win)."""

    if registry is None:
        registry = default_registry()
    for directory in config.source_directories:
        registry.add_source_directory(directory)
    return registry


def build_pipeline(config: PipelineConfig, registry: OperationRegistry | None = None) -> Pipeline:
    return Pipeline.from_definitions(config.definitions(), registry=build_registry(config, registry))
