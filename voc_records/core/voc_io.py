from __future__ import annotations
import math
from pathlib import Path
from typing import List, Optional, Union

from lxml import etree
from pydantic import ValidationError

from .errors import CoordinateOutOfRange, MalformedAnnotation
from .models import Annotation, BoundingBox

# Supported image extensions
IMG_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp", ".tif", ".tiff"}

# Normalized coordinates at most this far outside [0, 1] are clamped silently.
COORD_EPSILON = 1e-3

_COORDS = ("xmin", "ymin", "xmax", "ymax")


# ---------------- Basic helpers ----------------

def is_image(path: Path) -> bool:
    '''Return True if path has a supported image extension.'''
    return path.suffix.lower() in IMG_EXTS


def annotation_for_image(img_path: Path) -> Path:
    return img_path.with_suffix(".xml")


def _number(node, tag: str, xml_path: Path) -> float:
    text = node.findtext(tag)
    if text is None or not text.strip():
        raise MalformedAnnotation(f"Missing <{tag}>", path=xml_path)
    try:
        value = float(text.strip())
    except ValueError as e:
        raise MalformedAnnotation(f"Non-numeric <{tag}> value {text.strip()!r}", path=xml_path, cause=e)
    if not math.isfinite(value):
        raise MalformedAnnotation(f"Non-numeric <{tag}> value {text.strip()!r}", path=xml_path)
    return value


def normalize_coord(value: float, extent: float, tag: str, xml_path: Path,
                    eps: float = COORD_EPSILON) -> float:
    '''Divide a pixel coordinate by the image extent and clamp rounding noise into [0, 1].'''
    n = value / extent
    if n < -eps or n > 1.0 + eps:
        raise CoordinateOutOfRange(
            f"<{tag}>={value:g} is outside the image extent {extent:g}", path=xml_path
        )
    return min(max(n, 0.0), 1.0)


# ---------------- PASCAL-VOC ----------------


def _parse_object(obj, index: int, width: int, height: int, xml_path: Path) -> BoundingBox:
    name = (obj.findtext("name") or "").strip()
    if not name:
        raise MalformedAnnotation(f"Object #{index} has no <name>", path=xml_path)
    bndbox = obj.find("bndbox")
    if bndbox is None:
        raise MalformedAnnotation(f"Object #{index} ({name}) has no <bndbox>", path=xml_path)

    raw = {tag: _number(bndbox, tag, xml_path) for tag in _COORDS}
    xmin = normalize_coord(raw["xmin"], width, "xmin", xml_path)
    xmax = normalize_coord(raw["xmax"], width, "xmax", xml_path)
    ymin = normalize_coord(raw["ymin"], height, "ymin", xml_path)
    ymax = normalize_coord(raw["ymax"], height, "ymax", xml_path)
    try:
        return BoundingBox(label=name, xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)
    except ValidationError as e:
        raise MalformedAnnotation(f"Object #{index} ({name}) is not a valid box", path=xml_path, cause=e)


def _dimension(size, tag: str, xml_path: Path) -> int:
    value = _number(size, tag, xml_path)
    if value <= 0 or value != int(value):
        raise MalformedAnnotation(f"<size>/<{tag}> must be a positive integer, got {value:g}", path=xml_path)
    return int(value)


def parse_annotation(content: Union[bytes, str], xml_path: Path,
                     default_filename: Optional[str] = None) -> Annotation:
    '''Parse PASCAL-VOC XML content. xml_path is only used in error messages.'''
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as e:
        raise MalformedAnnotation("Invalid XML", path=xml_path, cause=e)
    if root.tag != "annotation":
        raise MalformedAnnotation(f"Root element is <{root.tag}>, expected <annotation>", path=xml_path)

    size = root.find("size")
    if size is None:
        raise MalformedAnnotation("Missing <size>", path=xml_path)
    width = _dimension(size, "width", xml_path)
    height = _dimension(size, "height", xml_path)
    depth_text = (size.findtext("depth") or "").strip()

    boxes = [
        _parse_object(obj, i, width, height, xml_path)
        for i, obj in enumerate(root.findall("object"))
    ]

    filename = (root.findtext("filename") or "").strip() or default_filename
    if not filename:
        raise MalformedAnnotation("Missing <filename>", path=xml_path)

    return Annotation(
        image_filename=filename,
        width=width,
        height=height,
        boxes=tuple(boxes),
        folder=(root.findtext("folder") or "").strip() or None,
        path=(root.findtext("path") or "").strip() or None,
        depth=int(depth_text) if depth_text.isdigit() else None,
    )


def read_annotation(xml_path: Path, default_filename: Optional[str] = None) -> Annotation:
    try:
        content = Path(xml_path).read_bytes()
    except OSError as e:
        raise MalformedAnnotation("Cannot read annotation", path=xml_path, cause=e)
    return parse_annotation(content, Path(xml_path), default_filename)


def list_images(root: Path) -> List[Path]:
    out = [p for p in root.rglob("*") if p.is_file() and is_image(p)]
    out.sort()
    return out
