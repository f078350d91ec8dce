"""EXIF metadata helpers built on Pillow.

Tags are addressed by their Pillow names (`ExifTags.TAGS`, e.g. "Make",
"DateTimeOriginal"); tags without a name use the hex form "0x9999". Reading
merges the main image directory with the Exif sub-directory.

Pointer tags (Exif/GPS/interop offsets) and TIFF layout tags (sizes, strips,
compression) describe the file, not the picture, and are never reported or
compared.

Writing re-encodes the image: Pillow cannot patch metadata in place. Formats
Pillow cannot embed EXIF into report every value as unwritable.
"""

from __future__ import annotations

import logging
import os
import struct
from collections.abc import Iterable, Mapping
from typing import Any

from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

EXIF_IFD = 0x8769
GPS_IFD = 0x8825
INTEROP_IFD = 0xA005
POINTER_TAGS = frozenset({EXIF_IFD, GPS_IFD, INTEROP_IFD})

# ImageWidth, ImageLength, BitsPerSample, Compression, PhotometricInterpretation,
# FillOrder, StripOffsets, SamplesPerPixel, RowsPerStrip, StripByteCounts,
# PlanarConfiguration, Predictor, ColorMap, TileWidth, TileLength, TileOffsets,
# TileByteCounts, ExtraSamples, SampleFormat, JPEGTables
LAYOUT_TAGS = frozenset(
    {256, 257, 258, 259, 262, 266, 273, 277, 278, 279, 284, 317, 320, 322, 323, 324, 325, 338, 339, 347}
)

IGNORED_TAGS = POINTER_TAGS | LAYOUT_TAGS

EXIF_FORMATS = frozenset({"JPEG", "PNG", "WEBP", "TIFF"})

_TAG_IDS = {name: tag for tag, name in ExifTags.TAGS.items()}


def tag_name(tag: int) -> str:
    return ExifTags.TAGS.get(tag, f"0x{tag:04x}")


def tag_id(name: str) -> int | None:
    if name in _TAG_IDS:
        return _TAG_IDS[name]
    if name.lower().startswith("0x"):
        try:
            return int(name, 16)
        except ValueError:
            return None
    return None


def _exif_tags(exif: Image.Exif) -> dict[int, Any]:
    tags = {tag: value for tag, value in exif.items() if tag not in IGNORED_TAGS}
    for tag, value in exif.get_ifd(EXIF_IFD).items():
        if tag not in IGNORED_TAGS:
            tags.setdefault(tag, value)
    return tags


def read_exif(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Return `{tag_name: value}` for every EXIF tag in the image at `path`."""

    with Image.open(path) as image:
        return {tag_name(tag): value for tag, value in _exif_tags(image.getexif()).items()}


def image_metadata(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Descriptive metadata for a version: format, size, mode and EXIF tags."""

    with Image.open(path) as image:
        return {
            "format": image.format,
            "width": image.width,
            "height": image.height,
            "mode": image.mode,
            "exif": {tag_name(tag): value for tag, value in _exif_tags(image.getexif()).items()},
        }


def missing_exif_fields(
    this: Mapping[str, Any],
    other: Mapping[str, Any],
    skip_tags: Iterable[str] = (),
) -> dict[str, Any]:
    """Tags present in `other` but not in `this`, minus `skip_tags`."""

    skip = set(skip_tags)
    return {tag: value for tag, value in other.items() if tag not in this and tag not in skip}


def exif_save_kwargs(exif: Image.Exif, image_format: str | None) -> dict[str, Any]:
    """Keyword arguments for `Image.save` that embed `exif` in `image_format`."""

    if image_format == "TIFF":
        return {"tiffinfo": _exif_tags(exif)}
    if image_format in EXIF_FORMATS:
        return {"exif": exif.tobytes()}
    return {}


def _serializable(tag: int, value: Any) -> bool:
    probe = Image.Exif()
    probe[tag] = value
    try:
        probe.tobytes()
    except (TypeError, ValueError, struct.error) as exc:
        logger.debug("EXIF tag %s cannot be written (%s)", tag_name(tag), exc)
        return False
    return True


def _save(image: Image.Image, out_file: str, exif: Image.Exif) -> None:
    save_kwargs: dict[str, Any] = {"format": image.format, **exif_save_kwargs(exif, image.format)}
    if image.format == "JPEG":
        save_kwargs.update(quality="keep", subsampling="keep")
    image.save(out_file, **save_kwargs)


def write_exif(
    src_file: str | os.PathLike[str],
    out_file: str,
    values: Mapping[str, Any],
) -> dict[str, Any] | None:
    """Write `src_file` to `out_file` with `values` added to its EXIF tags.

    Returns the tags that could not be written (unknown names, values that
    cannot be encoded, or a format without EXIF support), or None.
    """

    unwritable: dict[str, Any] = {}
    with Image.open(src_file) as image:
        image.load()
        if image.format not in EXIF_FORMATS:
            image.save(out_file, format=image.format)
            return dict(values) or None

        exif = image.getexif()
        for name, value in values.items():
            tag = tag_id(name)
            if tag is None or tag in IGNORED_TAGS or not _serializable(tag, value):
                unwritable[name] = value
                continue
            exif[tag] = value
        _save(image, out_file, exif)

    return unwritable or None


def delete_exif_tags(
    src_file: str | os.PathLike[str],
    out_file: str,
    tags: Iterable[str],
) -> dict[str, Any] | None:
    """Write `src_file` to `out_file` without `tags`; return the deleted values."""

    deleted: dict[str, Any] = {}
    with Image.open(src_file) as image:
        image.load()
        exif = image.getexif()
        sub_ifd = exif.get_ifd(EXIF_IFD)
        for name in tags:
            tag = tag_id(name)
            if tag is None or tag in IGNORED_TAGS:
                continue
            for directory in (exif, sub_ifd):
                if tag in directory:
                    deleted.setdefault(name, directory[tag])
                    del directory[tag]
        _save(image, out_file, exif)

    return deleted or None
