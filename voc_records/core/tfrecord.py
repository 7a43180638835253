"""
Record file writer.
Each record is framed as:

    uint64 length          (little-endian)
    uint32 masked_crc32c(length bytes)
    bytes  data[length]
    uint32 masked_crc32c(data)
"""

from __future__ import annotations
import struct
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

import google_crc32c

from .errors import OutputWriteError
from .utils.logging import get_logger

logger = get_logger(__name__)

_MASK_DELTA = 0xA282EAD8
_U32 = 0xFFFFFFFF


def crc32c(data: bytes, crc: int = 0) -> int:
    '''CRC32C (Castagnoli) of data, optionally continuing from a previous crc.'''
    return google_crc32c.extend(crc, data)


def mask_crc(crc: int) -> int:
    return ((((crc >> 15) | (crc << 17)) & _U32) + _MASK_DELTA) & _U32


def masked_crc32c(data: bytes) -> int:
    return mask_crc(crc32c(data))


def frame_record(data: bytes) -> bytes:
    """Return one fully framed record for data."""
    header = struct.pack("<Q", len(data))
    return b"".join((
        header,
        struct.pack("<I", masked_crc32c(header)),
        data,
        struct.pack("<I", masked_crc32c(data)),
    ))


class RecordWriter:
    """Append-only record file writer.

    Records go to a sibling ".tmp" file which replaces the target only on a
    clean close; on error the temp file is removed and the target untouched.
    Closing a writer that received no records still produces an empty file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        self._fh: Optional[BinaryIO] = None
        self.count = 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._tmp, "wb")
        except OSError as e:
            raise OutputWriteError("Cannot open record file", path=self.path, cause=e)

    def write(self, data: bytes) -> None:
        if self._fh is None:
            raise OutputWriteError("Record writer is closed", path=self.path)
        record = frame_record(data)
        try:
            self._fh.write(record)
        except OSError as e:
            self.abort()
            raise OutputWriteError("Failed to write record", path=self.path, cause=e)
        self.count += 1

    def write_all(self, records: Iterable[bytes]) -> int:
        for data in records:
            self.write(data)
        return self.count

    def close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.flush()
            fh.close()
            self._tmp.replace(self.path)
        except OSError as e:
            self._tmp.unlink(missing_ok=True)
            raise OutputWriteError("Failed to finalize record file", path=self.path, cause=e)
        logger.debug(f"Wrote {self.count} records to {self.path}")

    def abort(self) -> None:
        '''Drop everything written so far; the target file is not touched.'''
        if self._fh is not None:
            fh, self._fh = self._fh, None
            try:
                fh.close()
            except OSError as e:
                logger.warning(f"Error closing {self._tmp}: {e}")
        self._tmp.unlink(missing_ok=True)

    def __enter__(self) -> "RecordWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()
