from __future__ import annotations
from pathlib import Path

from .fsops import atomic_write_text
from .vocabulary import LabelVocabulary

DEFAULT_LABEL_MAP_NAME = "label_map.pbtxt"


def _quote(label: str) -> str:
    return '"' + label.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_label_map(vocabulary: LabelVocabulary) -> str:
    '''One text-format `item { name id }` block per label, ascending id.'''
    blocks = [
        f"item {{\n  name: {_quote(label)}\n  id: {label_id}\n}}\n"
        for label, label_id in sorted(vocabulary.items(), key=lambda kv: kv[1])
    ]
    return "\n".join(blocks)


def write_label_map(vocabulary: LabelVocabulary, path: Path) -> Path:
    path = Path(path)
    atomic_write_text(path, format_label_map(vocabulary))
    return path
