"""Non-destructive file versioning and operation pipelines.

This package is intentionally independent of `file_pipeline.*`. Concrete
operations, configuration files and command-line surfaces belong to the
consuming application.
"""

from versionkit.config_namespace import ConfigNamespace
from versionkit.errors import (
    FailedModificationError,
    FilePipelineError,
    MetadataReadError,
    MisplacedVersionFileError,
    MissingVersionFileError,
    SourceDirectoryError,
    SourceFileError,
)
from versionkit.history import History
from versionkit.log_data import LogData, parse_log_data
from versionkit.operations import FileOperation, Operation, describe_operation
from versionkit.pipeline import BatchOutcome, Pipeline
from versionkit.registry import OperationRef, OperationRegistry, normalize_operation_name
from versionkit.results import CapturedDataTag, OperationDescriptor, OperationResult
from versionkit.validator import Validator
from versionkit.versioned_file import VersionedFile
from versionkit.versions import VersionInfo

__all__ = [
    "BatchOutcome",
    "CapturedDataTag",
    "ConfigNamespace",
    "FailedModificationError",
    "FileOperation",
    "FilePipelineError",
    "History",
    "LogData",
    "MetadataReadError",
    "MisplacedVersionFileError",
    "MissingVersionFileError",
    "Operation",
    "OperationDescriptor",
    "OperationRef",
    "OperationRegistry",
    "OperationResult",
    "Pipeline",
    "SourceDirectoryError",
    "SourceFileError",
    "Validator",
    "VersionInfo",
    "VersionedFile",
    "describe_operation",
    "normalize_operation_name",
    "parse_log_data",
]
