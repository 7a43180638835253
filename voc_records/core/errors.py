"""
Error types raised by the conversion pipeline.
Every error keeps the offending path and the underlying cause so the
caller can report something actionable.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Union


class VocRecordsError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None,
                 cause: Optional[BaseException] = None):
        self.message = message
        self.path = Path(path) if path is not None else None
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        text = self.message
        if self.path is not None:
            text = f"{text} ({self.path})"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text


class MalformedAnnotation(VocRecordsError):
    """The XML file does not describe a usable PASCAL-VOC annotation."""


class CoordinateOutOfRange(VocRecordsError):
    """A box coordinate falls outside the image beyond the clamp epsilon."""


class EmptyVocabulary(VocRecordsError):
    """No labels were found in any annotation."""


class InsufficientData(VocRecordsError):
    """There is nothing to split."""


class UnknownLabel(VocRecordsError):
    """A label was looked up that the vocabulary does not contain."""

    def __init__(self, label: str, path: Optional[Union[str, Path]] = None):
        self.label = label
        super().__init__(f"Unknown label '{label}'", path=path)


class ImageReadError(VocRecordsError):
    """The image referenced by an entry could not be read."""


class MissingAnnotation(VocRecordsError):
    """An image has no sibling XML annotation."""


class OutputWriteError(VocRecordsError):
    """An output file could not be written."""


class ConfigError(VocRecordsError):
    """The run configuration is invalid."""
