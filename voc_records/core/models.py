from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, confloat, conint, constr, model_validator

Norm = confloat(ge=0.0, le=1.0)


class BoundingBox(BaseModel):
    """One labelled box, coordinates normalized to [0, 1]."""
    model_config = ConfigDict(frozen=True)

    label: constr(min_length=1)
    xmin: Norm; xmax: Norm; ymin: Norm; ymax: Norm

    @model_validator(mode="after")
    def _check_order(self) -> "BoundingBox":
        if not (self.xmin < self.xmax and self.ymin < self.ymax):
            raise ValueError(
                f"degenerate box ({self.xmin}, {self.ymin}, {self.xmax}, {self.ymax})"
            )
        return self

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.xmin, self.ymin, self.xmax, self.ymax)


class Annotation(BaseModel):
    model_config = ConfigDict(frozen=True)

    image_filename: str
    width: conint(gt=0)
    height: conint(gt=0)
    boxes: Tuple[BoundingBox, ...] = Field(default_factory=tuple)
    # informational VOC fields, not encoded
    folder: Optional[str] = None
    path: Optional[str] = None
    depth: Optional[int] = None

    @property
    def labels(self) -> List[str]:
        return [b.label for b in self.boxes]


class DatasetEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    image_path: Path
    annotation: Annotation


class SplitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    train: Tuple[DatasetEntry, ...] = Field(default_factory=tuple)
    test: Tuple[DatasetEntry, ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.train) + len(self.test)
