"""Default file operations.

Each module defines one `FileOperation` subclass, registered under the
module name (`scale`, `format_conversion`, ...).
"""

from __future__ import annotations

from file_pipeline.operations.exif_recovery import ExifRecovery
from file_pipeline.operations.exif_redaction import ExifRedaction
from file_pipeline.operations.exif_restoration import ExifRestoration
from file_pipeline.operations.format_conversion import FormatConversion
from file_pipeline.operations.scale import Scale
from versionkit import OperationRegistry

DEFAULT_OPERATIONS = {
    "scale": Scale,
    "format_conversion": FormatConversion,
    "exif_recovery": ExifRecovery,
    "exif_restoration": ExifRestoration,
    "exif_redaction": ExifRedaction,
}


def default_registry() -> OperationRegistry:
    registry = OperationRegistry()
    for name, factory in DEFAULT_OPERATIONS.items():
        registry.register(name, factory, source=factory.__module__)
    return registry


__all__ = [
    "DEFAULT_OPERATIONS",
    "ExifRecovery",
    "ExifRedaction",
    "ExifRestoration",
    "FormatConversion",
    "Scale",
    "default_registry",
]
