"""
Example encoder.
Turns one dataset entry into the object detection feature map and
serializes it as a tensorflow.Example protobuf message:

    Example  { Features features = 1; }
    Features { map<string, Feature> feature = 1; }
    Feature  { oneof kind { BytesList bytes_list = 1;
                            FloatList float_list = 2;
                            Int64List int64_list = 3; } }
    BytesList { repeated bytes value = 1; }
    FloatList { repeated float value = 1 [packed = true]; }
    Int64List { repeated int64 value = 1 [packed = true]; }
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np

from .errors import ImageReadError, UnknownLabel
from .models import DatasetEntry
from .tf_protos import Example
from .vocabulary import LabelVocabulary

INT64 = "int64"
FLOAT = "float"
BYTES = "bytes"

# A feature is (kind, values)
Feature = Tuple[str, list]
FeatureMap = Dict[str, Feature]

# Feature.kind member for each feature kind
_LIST_FIELD = {BYTES: "bytes_list", FLOAT: "float_list", INT64: "int64_list"}


# ---------------- Feature helpers ----------------

def int64_feature(values: Union[int, Sequence[int]]) -> Feature:
    if isinstance(values, (int, np.integer)):
        values = [values]
    return (INT64, [int(v) for v in values])


def float_feature(values: Union[float, Sequence[float]]) -> Feature:
    if isinstance(values, (int, float, np.floating)):
        values = [values]
    return (FLOAT, [float(v) for v in values])


def bytes_feature(values: Union[bytes, str, Sequence[Union[bytes, str]]]) -> Feature:
    if isinstance(values, (bytes, str)):
        values = [values]
    return (BYTES, [v.encode("utf-8") if isinstance(v, str) else bytes(v) for v in values])


def image_format(image_path: Path) -> str:
    '''Lowercase extension without the dot, e.g. "jpg".'''
    return Path(image_path).suffix.lower().lstrip(".")


def read_image_bytes(image_path: Path) -> bytes:
    try:
        return Path(image_path).read_bytes()
    except OSError as e:
        raise ImageReadError("Cannot read image", path=image_path, cause=e)


def build_features(entry: DatasetEntry, vocabulary: LabelVocabulary,
                   encoded: bytes) -> FeatureMap:
    """Map one entry onto the object detection feature schema."""
    ann = entry.annotation
    boxes = ann.boxes

    class_ids: List[int] = []
    for box in boxes:
        try:
            class_ids.append(vocabulary.id_for(box.label))
        except UnknownLabel as e:
            raise UnknownLabel(e.label, path=entry.image_path) from None

    filename = ann.image_filename
    return {
        "image/height": int64_feature(ann.height),
        "image/width": int64_feature(ann.width),
        "image/filename": bytes_feature(filename),
        "image/source_id": bytes_feature(filename),
        "image/encoded": bytes_feature(encoded),
        "image/format": bytes_feature(image_format(entry.image_path)),
        "image/object/bbox/xmin": float_feature([b.xmin for b in boxes]),
        "image/object/bbox/xmax": float_feature([b.xmax for b in boxes]),
        "image/object/bbox/ymin": float_feature([b.ymin for b in boxes]),
        "image/object/bbox/ymax": float_feature([b.ymax for b in boxes]),
        "image/object/class/text": bytes_feature([b.label for b in boxes]),
        "image/object/class/label": int64_feature(class_ids),
    }


# ---------------- Messages ----------------

def to_example(features: FeatureMap) -> Example:
    """Build the tensorflow.Example message for a feature map."""
    example = Example()
    feature_map = example.features.feature
    for key, (kind, values) in features.items():
        if kind not in _LIST_FIELD:
            raise ValueError(f"Unknown feature kind '{kind}'")
        value_list = getattr(feature_map[key], _LIST_FIELD[kind])
        # an empty list still selects its kind
        value_list.SetInParent()
        value_list.value.extend(values)
    return example


def serialize_example(features: FeatureMap) -> bytes:
    """Serialize a feature map as an Example message, map keys in sorted order."""
    return to_example(features).SerializeToString(deterministic=True)


def encode_entry(entry: DatasetEntry, vocabulary: LabelVocabulary) -> bytes:
    """Read the entry's image and return the serialized Example."""
    encoded = read_image_bytes(entry.image_path)
    return serialize_example(build_features(entry, vocabulary, encoded))
