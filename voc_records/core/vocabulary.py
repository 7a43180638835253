from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Tuple

from .errors import EmptyVocabulary, UnknownLabel
from .models import Annotation

SORTED = "sorted"
FIRST_SEEN = "first_seen"
POLICIES = (SORTED, FIRST_SEEN)


class LabelVocabulary:
    """Immutable label -> id mapping shared by every encoded example of a run."""

    __slots__ = ("_ids", "_labels")

    def __init__(self, labels: Iterable[str], start_id: int = 1):
        if start_id < 1:
            raise ValueError(f"start_id must be >= 1, got {start_id}")
        ordered = list(labels)
        if len(set(ordered)) != len(ordered):
            raise ValueError("Duplicate labels in vocabulary")
        self._labels: Tuple[str, ...] = tuple(ordered)
        self._ids: Dict[str, int] = {lbl: start_id + i for i, lbl in enumerate(ordered)}

    def id_for(self, label: str) -> int:
        try:
            return self._ids[label]
        except KeyError:
            raise UnknownLabel(label) from None

    def get(self, label: str, default=None):
        return self._ids.get(label, default)

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    def items(self) -> List[Tuple[str, int]]:
        '''(label, id) pairs, ascending by id.'''
        return [(lbl, self._ids[lbl]) for lbl in self._labels]

    def __contains__(self, label: object) -> bool:
        return label in self._ids

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __repr__(self) -> str:
        return f"LabelVocabulary({dict(self.items())!r})"


def build_vocabulary(annotations: Iterable[Annotation], policy: str = SORTED,
                     start_id: int = 1) -> LabelVocabulary:
    """Collect every distinct label across all annotations and number them.

    'sorted' numbers labels in lexicographic order; 'first_seen' numbers them
    in order of first appearance (files in input order, objects in file order).
    """
    if policy not in POLICIES:
        raise ValueError(f"Unknown label policy '{policy}', expected one of {POLICIES}")

    seen: Dict[str, None] = {}
    for ann in annotations:
        for box in ann.boxes:
            seen.setdefault(box.label, None)

    if not seen:
        raise EmptyVocabulary("No labels found in any annotation")

    labels = sorted(seen) if policy == SORTED else list(seen)
    return LabelVocabulary(labels, start_id=start_id)
