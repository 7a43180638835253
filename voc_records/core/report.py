from __future__ import annotations
import json, datetime, platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .fsops import atomic_write_text

@dataclass
class PrepareReport:
    examples: int = 0
    train: int = 0
    test: int = 0
    labels: Dict[str, int] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)
    started_at: str = field(default_factory=lambda: _now())
    finished_at: Optional[str] = None

    def finish(self) -> "PrepareReport":
        self.finished_at = _now()
        return self

    def summary(self) -> str:
        files = len(self.outputs)
        return (f"Done, {files} files were written, found {self.examples} examples "
                f"({self.train} train / {self.test} test, {len(self.labels)} labels).")

    def to_json(self) -> dict:
        return {
            "created_at": self.finished_at or _now(),
            "started_at": self.started_at,
            "os": platform.platform(),
            "totals": {"examples": self.examples, "train": self.train, "test": self.test},
            "labels": dict(self.labels),
            "outputs": dict(self.outputs),
        }

def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat().replace("+00:00", "Z")

def write_report(out_root: Path, report: PrepareReport) -> Path:
    reports = out_root / "reports"
    path = reports / "prepare_report.json"
    atomic_write_text(path, json.dumps(report.to_json(), indent=2))
    return path
