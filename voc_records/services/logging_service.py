"""
Logging service implementation for VOC Records.
Console output for the command line, plus a log file kept next to the
record files of each run so an output directory records how it was made.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from pathlib import Path
import logging
import sys

from .interfaces import ILogger
from ..core.errors import VocRecordsError
from ..core.utils.logging import ROOT_LOGGER

RUN_LOG_NAME = Path("logs") / "prepare.log"

CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
# parse/encode worker threads show up in the run log
FILE_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'


def _file_handler(path: Path, mode: str) -> logging.FileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode=mode, encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def render(message: str, kwargs: Dict[str, Any]) -> str:
    """Append keyword context as ' [key=value, ...]'."""
    if not kwargs:
        return message
    return f"{message} [{', '.join(f'{k}={v}' for k, v in kwargs.items())}]"


class LoggingService(ILogger):
    """Logger for the prepare command."""

    def __init__(self, verbose: bool = False, log_file: Optional[Path] = None,
                 name: str = ROOT_LOGGER):
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._run_handler: Optional[logging.Handler] = None

        # Replace whatever a previous run installed
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        self._logger.addHandler(console)

        if log_file:
            self._logger.addHandler(_file_handler(Path(log_file), mode='a'))

    def attach_run_log(self, output_dir: Path) -> Path:
        """Start logging this run to <output_dir>/logs/prepare.log, replacing an older one."""
        self.detach_run_log()
        path = Path(output_dir) / RUN_LOG_NAME
        self._run_handler = _file_handler(path, mode='w')
        self._logger.addHandler(self._run_handler)
        return path

    def detach_run_log(self) -> None:
        if self._run_handler is not None:
            self._logger.removeHandler(self._run_handler)
            self._run_handler.close()
            self._run_handler = None

    def debug(self, message: str, **kwargs) -> None:
        self._logger.debug(render(message, kwargs))

    def info(self, message: str, **kwargs) -> None:
        self._logger.info(render(message, kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self._logger.warning(render(message, kwargs))

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log an error; pipeline errors show their path and cause instead of a traceback."""
        exc_info = exception
        if isinstance(exception, VocRecordsError):
            if exception.path is not None:
                kwargs.setdefault("path", exception.path)
            if exception.cause is not None:
                kwargs.setdefault("cause", exception.cause)
            exc_info = None
        self._logger.error(render(message, kwargs), exc_info=exc_info)


class NullLogger(ILogger):
    """Null logger implementation for library use or when logging is disabled."""

    def debug(self, message: str, **kwargs) -> None:
        pass

    def info(self, message: str, **kwargs) -> None:
        pass

    def warning(self, message: str, **kwargs) -> None:
        pass

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        pass


class MemoryLogger(ILogger):
    """Keeps entries in memory; used by the tests."""

    def __init__(self):
        self.entries: list = []

    def debug(self, message: str, **kwargs) -> None:
        self.entries.append(("DEBUG", message, kwargs))

    def info(self, message: str, **kwargs) -> None:
        self.entries.append(("INFO", message, kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self.entries.append(("WARNING", message, kwargs))

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        if exception is not None:
            kwargs['exception'] = str(exception)
        self.entries.append(("ERROR", message, kwargs))

    def messages(self, level: Optional[str] = None) -> list:
        return [m for lvl, m, _ in self.entries if level is None or lvl == level]
