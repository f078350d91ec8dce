from __future__ import annotations

from typing import Any

from file_pipeline.framework.exif import missing_exif_fields, read_exif, write_exif
from versionkit import CapturedDataTag, FileOperation


class ExifRestoration(FileOperation):
    """Copy EXIF tags missing in the current version back from the original.

    Tags that cannot be written to the new version are returned as captured
    data. `skip_tags` are never restored.
    """

    defaults = {"skip_tags": []}
    captured_data_tag = CapturedDataTag.DROPPED_EXIF_DATA

    def operation(self, src_file: str, out_file: str, original: str | None = None) -> Any:
        if original is None:
            raise ValueError("ExifRestoration needs the original file to restore from")
        values = missing_exif_fields(read_exif(src_file), read_exif(original), self.options["skip_tags"])
        return write_exif(src_file, out_file, values)
