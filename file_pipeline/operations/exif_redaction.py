from __future__ import annotations

from typing import Any

from file_pipeline.framework.exif import delete_exif_tags
from versionkit import CapturedDataTag, FileOperation


class ExifRedaction(FileOperation):
    """Delete unwanted EXIF tags (e.g. GPS data); deleted values are captured.

    Apply after `exif_restoration`, otherwise redacted tags come back.
    """

    defaults = {"redact_tags": []}
    captured_data_tag = CapturedDataTag.REDACTED_EXIF_DATA

    def operation(self, src_file: str, out_file: str, original: str | None = None) -> Any:
        return delete_exif_tags(src_file, out_file, self.options["redact_tags"])
