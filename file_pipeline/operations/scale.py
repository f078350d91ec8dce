"""Image scaling.

Two ways to pick the scale factor:
  - scale_by_bounds: largest size that fits inside width x height;
  - scale_by_pixels: same total pixel count as width x height.
"""

from __future__ import annotations

import math
from typing import Any

from PIL import Image

from versionkit import FileOperation

SCALE_METHODS = ("scale_by_bounds", "scale_by_pixels")


def _compute_target_size(width: int, height: int, factor: float) -> tuple[int, int]:
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")
    # Guard against rounding to 0 in degenerate cases.
    return max(1, int(round(width * factor))), max(1, int(round(height * factor)))


class Scale(FileOperation):
    """Scale an image to a target resolution (Lanczos resampling)."""

    defaults = {"width": 1024, "height": 768, "method": "scale_by_bounds"}

    def __init__(self, **options: Any):
        super().__init__(**options)
        method = self.options["method"]
        if method not in SCALE_METHODS:
            raise ValueError(f"Unknown scale method: {method!r} (expected: {', '.join(SCALE_METHODS)})")
        for key in ("width", "height"):
            value = self.options[key]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"Scale {key} must be a positive int (got {value!r})")

    def scale_by_bounds(self, size: tuple[int, int]) -> float:
        width, height = size
        x = self.options["width"] / float(width)
        y = self.options["height"] / float(height)
        return y if x * height > self.options["height"] else x

    def scale_by_pixels(self, size: tuple[int, int]) -> float:
        out_pixels = math.sqrt(self.options["width"] * self.options["height"])
        src_pixels = math.sqrt(size[0] * size[1])
        return out_pixels / src_pixels

    def target_size(self, size: tuple[int, int]) -> tuple[int, int]:
        factor = getattr(self, self.options["method"])(size)
        return _compute_target_size(size[0], size[1], factor)

    def operation(self, src_file: str, out_file: str, original: str | None = None) -> Any:
        with Image.open(src_file) as image:
            image_format = image.format
            exif = image.info.get("exif")
            resized = image.resize(self.target_size(image.size), resample=Image.Resampling.LANCZOS)

        save_kwargs: dict[str, Any] = {"format": image_format}
        if exif:
            save_kwargs["exif"] = exif
        if image_format == "JPEG":
            save_kwargs["quality"] = 95
        resized.save(out_file, **save_kwargs)
        return None
