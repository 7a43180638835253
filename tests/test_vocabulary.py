import pytest

from voc_records.core.errors import EmptyVocabulary, UnknownLabel
from voc_records.core.models import Annotation, BoundingBox
from voc_records.core.vocabulary import LabelVocabulary, build_vocabulary


def _ann(*labels):
    return Annotation(
        image_filename="x.jpg", width=10, height=10,
        boxes=tuple(BoundingBox(label=l, xmin=0.1, ymin=0.1, xmax=0.5, ymax=0.5) for l in labels),
    )


def test_sorted_ids_are_dense_from_one():
    vocab = build_vocabulary([_ann("dog", "cat"), _ann("bird", "dog"), _ann()])
    assert vocab.items() == [("bird", 1), ("cat", 2), ("dog", 3)]
    assert vocab.id_for("cat") == 2
    assert len(vocab) == 3
    assert "dog" in vocab and "cow" not in vocab


def test_sorted_ids_do_not_depend_on_input_order():
    a = build_vocabulary([_ann("dog"), _ann("cat", "ant")])
    b = build_vocabulary([_ann("ant"), _ann("cat"), _ann("dog")])
    assert a.items() == b.items()


def test_first_seen_policy():
    vocab = build_vocabulary([_ann("dog", "cat"), _ann("ant", "dog")], policy="first_seen")
    assert vocab.items() == [("dog", 1), ("cat", 2), ("ant", 3)]


def test_start_id():
    vocab = build_vocabulary([_ann("b", "a")], start_id=5)
    assert vocab.items() == [("a", 5), ("b", 6)]
    with pytest.raises(ValueError):
        LabelVocabulary(["a"], start_id=0)


def test_empty_vocabulary():
    with pytest.raises(EmptyVocabulary):
        build_vocabulary([_ann(), _ann()])
    with pytest.raises(EmptyVocabulary):
        build_vocabulary([])


def test_unknown_label():
    vocab = build_vocabulary([_ann("cat")])
    with pytest.raises(UnknownLabel) as exc:
        vocab.id_for("dog")
    assert exc.value.label == "dog"


def test_unknown_policy():
    with pytest.raises(ValueError):
        build_vocabulary([_ann("cat")], policy="random")
