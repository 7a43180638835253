"""
Abstract interfaces for VOC Records services.
These interfaces define contracts for the service components,
so the pipeline can be driven with real or in-memory collaborators.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from pathlib import Path

from ..core.progress import ProgressCallback
from ..core.report import PrepareReport


class ILogger(ABC):
    """Interface for logging operations."""

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        """Log a debug message."""
        pass

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        """Log an info message."""
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs) -> None:
        """Log a warning message."""
        pass

    @abstractmethod
    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log an error message."""
        pass

    def attach_run_log(self, output_dir: Path) -> Optional[Path]:
        """Start a log file for one run inside its output directory. Optional."""
        return None

    def detach_run_log(self) -> None:
        """Stop the log file started by attach_run_log."""
        pass


class IConfigService(ABC):
    """Interface for run configuration management."""

    @abstractmethod
    def load(self, path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> Any:
        """Build the effective configuration from a file and overrides."""
        pass

    @abstractmethod
    def export(self, config: Any, path: Path) -> Path:
        """Write a configuration to a YAML or JSON file."""
        pass


class IPrepareService(ABC):
    """Interface for the dataset preparation pipeline."""

    @abstractmethod
    def run(self, config: Any, progress_cb: Optional[ProgressCallback] = None) -> PrepareReport:
        """Convert the configured inputs into record files and a label map."""
        pass
