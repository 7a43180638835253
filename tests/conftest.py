from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest

from voc_records.services import MemoryLogger

# (name, xmin, ymin, xmax, ymax)
Obj = Tuple[str, float, float, float, float]

FAKE_JPEG = b"\xff\xd8\xff\xe0" + b"\x00\x10JFIF" + bytes(range(64))


def voc_xml(filename: str, width=480, height=360, objects: Iterable[Obj] = (),
            depth: Optional[int] = 3) -> str:
    objs = "".join(
        f"""
    <object>
        <name>{name}</name>
        <pose>Unspecified</pose>
        <truncated>0</truncated>
        <difficult>0</difficult>
        <bndbox>
            <xmin>{xmin}</xmin>
            <ymin>{ymin}</ymin>
            <xmax>{xmax}</xmax>
            <ymax>{ymax}</ymax>
        </bndbox>
    </object>"""
        for name, xmin, ymin, xmax, ymax in objects
    )
    depth_xml = f"<depth>{depth}</depth>" if depth is not None else ""
    return f"""<annotation>
    <folder>images</folder>
    <filename>{filename}</filename>
    <path>/home/someone/images/{filename}</path>
    <source><database>Unknown</database></source>
    <size>
        <width>{width}</width>
        <height>{height}</height>
        {depth_xml}
    </size>
    <segmented>0</segmented>{objs}
</annotation>
"""


def make_pair(root: Path, stem: str, objects: Iterable[Obj] = (), ext: str = "jpg",
              width=480, height=360, image_bytes: bytes = FAKE_JPEG) -> Tuple[Path, Path]:
    root.mkdir(parents=True, exist_ok=True)
    img = root / f"{stem}.{ext}"
    img.write_bytes(image_bytes + stem.encode())
    xml = root / f"{stem}.xml"
    xml.write_text(voc_xml(img.name, width, height, objects), encoding="utf-8")
    return img, xml


@pytest.fixture
def dataset(tmp_path) -> Path:
    """10 annotated images using 3 labels."""
    root = tmp_path / "dataset"
    labels = ["dog", "cat", "bird"]
    for i in range(10):
        objects = [(labels[i % 3], 10 + i, 20, 200 + i, 300)]
        if i % 2 == 0:
            objects.append((labels[(i + 1) % 3], 0, 0, 480, 360))
        make_pair(root, f"img_{i:02d}", objects)
    return root


@pytest.fixture
def memory_logger() -> MemoryLogger:
    return MemoryLogger()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("voc_records")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
