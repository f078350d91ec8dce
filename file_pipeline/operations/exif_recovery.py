from __future__ import annotations

from typing import Any

from file_pipeline.framework.exif import missing_exif_fields, read_exif
from versionkit import CapturedDataTag, FileOperation


class ExifRecovery(FileOperation):
    """Capture EXIF tags the original has but the current version lost.

    Does not modify the file: the missing tags and their values are returned
    as captured data so they can be stored elsewhere. `skip_tags` are ignored.
    """

    defaults = {"skip_tags": []}
    captured_data_tag = CapturedDataTag.DROPPED_EXIF_DATA
    modifies = False

    def operation(self, src_file: str, out_file: str, original: str | None = None) -> Any:
        if original is None:
            raise ValueError("ExifRecovery needs the original file to compare against")
        missing = missing_exif_fields(read_exif(src_file), read_exif(original), self.options["skip_tags"])
        return missing or None
