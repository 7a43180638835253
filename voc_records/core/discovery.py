"""
Pairs image files with their sibling PASCAL-VOC annotations.
"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Tuple

from .errors import ConfigError, MissingAnnotation
from .voc_io import annotation_for_image, is_image, list_images

Pair = Tuple[Path, Path]  # (image_path, xml_path)


def pair_for_image(img_path: Path) -> Pair:
    img_path = Path(img_path)
    if not is_image(img_path):
        raise ValueError(f"Not a supported image file: {img_path}")
    xml_path = annotation_for_image(img_path)
    if not xml_path.is_file():
        raise MissingAnnotation("Image has no matching XML annotation", path=img_path)
    return img_path, xml_path


def discover_pairs(input_dirs: Iterable[Path]) -> List[Pair]:
    """Recursively collect (image, xml) pairs from every input directory.

    Every image must have a sibling <stem>.xml; the first one missing raises
    MissingAnnotation. Pairs are returned sorted per directory, directories in
    the given order, duplicates (same resolved image) dropped.
    """
    pairs: List[Pair] = []
    seen = set()
    for root in input_dirs:
        root = Path(root)
        if not root.is_dir():
            raise ConfigError("Input directory does not exist", path=root)
        for img in list_images(root):
            key = img.resolve()
            if key in seen:
                continue
            seen.add(key)
            pairs.append(pair_for_image(img))
    return pairs
