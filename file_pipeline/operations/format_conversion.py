from __future__ import annotations

from typing import Any

from PIL import Image

from file_pipeline.framework.exif import EXIF_FORMATS, exif_save_kwargs
from versionkit import FileOperation

# Target format -> (mode to convert to, modes the format cannot store)
_MODE_FALLBACKS = {
    "JPEG": ("RGB", {"RGBA", "LA", "P", "I", "I;16", "F"}),
}


class FormatConversion(FileOperation):
    """Convert an image to another file format (TIFF by default).

    Metadata is dropped unless `keep_metadata` is set; pair with
    `exif_recovery` or `exif_restoration` to get it back.
    """

    defaults = {"extension": ".tiff", "keep_metadata": False, "compression": None}

    def __init__(self, **options: Any):
        super().__init__(**options)
        extension = str(self.options["extension"]).strip().lower()
        if not extension.startswith("."):
            extension = "." + extension
        if extension not in Image.registered_extensions():
            raise ValueError(f"Unsupported target extension: {extension}")
        self.options["extension"] = extension

    @property
    def target_format(self) -> str:
        return Image.registered_extensions()[self.options["extension"]]

    def extension(self, src_file: str) -> str:
        return self.options["extension"]

    def operation(self, src_file: str, out_file: str, original: str | None = None) -> Any:
        target_format = self.target_format
        save_kwargs: dict[str, Any] = {"format": target_format}
        if self.options["compression"] and target_format == "TIFF":
            save_kwargs["compression"] = self.options["compression"]

        with Image.open(src_file) as image:
            image.load()
            if self.options["keep_metadata"]:
                save_kwargs.update(exif_save_kwargs(image.getexif(), target_format))
            else:
                # Some encoders fall back to info["exif"] when no exif is passed.
                image.info.pop("exif", None)

            converted = image
            fallback = _MODE_FALLBACKS.get(target_format)
            if fallback is not None and image.mode in fallback[1]:
                converted = image.convert(fallback[0])
            converted.save(out_file, **save_kwargs)

        if self.options["keep_metadata"] and target_format not in EXIF_FORMATS:
            return f"{target_format} cannot store EXIF metadata; it was not kept"
        return None
