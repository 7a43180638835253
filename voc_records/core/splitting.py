from __future__ import annotations
import math
from typing import Sequence, Union

import numpy as np

from .errors import InsufficientData
from .models import DatasetEntry, SplitResult

DEFAULT_SEED = 42
DEFAULT_TEST_RATIO = 0.2

TRAIN = "train"
TEST = "test"


def parse_ratio(value: Union[str, float, int]) -> float:
    '''Accept 0.2, "0.2", "20%", "20" or "20/100"; return a fraction in (0, 1).

    A bare whole number is a percentage, so "1" means 1%. "1.0" is a
    fraction and therefore out of range.
    '''
    bare = True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        whole = isinstance(value, int)
        ratio = float(value)
    else:
        text = str(value).strip()
        whole = text.isdigit()
        try:
            if text.endswith("%"):
                bare = False
                ratio = float(text[:-1]) / 100.0
            elif "/" in text:
                bare = False
                num, den = text.split("/", 1)
                ratio = float(num) / float(den)
            else:
                ratio = float(text)
        except (ValueError, ZeroDivisionError) as e:
            raise ValueError(f"Invalid ratio {value!r}") from e
    if bare and (ratio > 1.0 or (whole and ratio >= 1.0)):
        ratio /= 100.0
    if not (0.0 < ratio < 1.0):
        raise ValueError(f"Ratio must be in (0, 1), got {value!r}")
    return ratio


def test_size(n: int, test_ratio: float) -> int:
    # round half up; the epsilon absorbs 0.7 * 10 == 6.999... style float noise
    return int(math.floor(n * test_ratio + 0.5 + 1e-9))


def train_size(n: int, test_ratio: float) -> int:
    return n - test_size(n, test_ratio)


def split_dataset(entries: Sequence[DatasetEntry], test_ratio: float = DEFAULT_TEST_RATIO,
                  seed: int = DEFAULT_SEED) -> SplitResult:
    """Shuffle entries with a seeded PCG64 generator and cut them in two.

    The test share N * test_ratio is rounded half up; the first N - test
    permuted entries go to train, the rest to test. Same seed and same input order give the same split.
    """
    if not (0.0 < test_ratio < 1.0):
        raise ValueError(f"test_ratio must be in (0, 1), got {test_ratio}")
    n = len(entries)
    if n == 0:
        raise InsufficientData("Nothing to split: no dataset entries")

    order = np.random.default_rng(seed).permutation(n)
    cut = train_size(n, test_ratio)
    return SplitResult(
        train=tuple(entries[i] for i in order[:cut]),
        test=tuple(entries[i] for i in order[cut:]),
    )
