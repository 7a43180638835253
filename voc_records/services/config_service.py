"""
Configuration service implementation for VOC Records.
Builds the run configuration from defaults, an optional YAML/JSON file
and command line overrides.
"""

from __future__ import annotations
from typing import Dict, Any, List, Literal, Optional
from pathlib import Path
import json

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .interfaces import IConfigService, ILogger
from .logging_service import NullLogger
from ..core.errors import ConfigError
from ..core.label_map import DEFAULT_LABEL_MAP_NAME
from ..core.splitting import DEFAULT_SEED, DEFAULT_TEST_RATIO, parse_ratio


class PrepareConfig(BaseModel):
    """Settings of one preparation run."""
    input_dirs: List[Path] = Field(min_length=1)
    output_dir: Path
    test_ratio: float = DEFAULT_TEST_RATIO
    seed: int = DEFAULT_SEED
    label_policy: Literal["sorted", "first_seen"] = "sorted"
    start_id: int = Field(default=1, ge=1)
    record_extension: str = "records"
    label_map_name: str = DEFAULT_LABEL_MAP_NAME
    workers: int = Field(default=4, ge=1)
    write_report: bool = True
    run_log: bool = True

    @field_validator("input_dirs", mode="before")
    @classmethod
    def _listify(cls, v):
        if isinstance(v, (str, Path)):
            return [v]
        return v

    @field_validator("test_ratio", mode="before")
    @classmethod
    def _ratio(cls, v):
        return parse_ratio(v)

    @field_validator("record_extension")
    @classmethod
    def _extension(cls, v: str) -> str:
        v = v.strip().lstrip(".")
        if not v:
            raise ValueError("record_extension cannot be empty")
        return v

    def record_path(self, split: str) -> Path:
        return self.output_dir / f"{split}.{self.record_extension}"

    @property
    def label_map_path(self) -> Path:
        return self.output_dir / self.label_map_name


class ConfigService(IConfigService):
    """Concrete implementation of configuration service."""

    def __init__(self, logger: Optional[ILogger] = None):
        self._logger = logger or NullLogger()

    def read_file(self, path: Path) -> Dict[str, Any]:
        """Read a YAML or JSON configuration file into a dict."""
        path = Path(path)
        if not path.exists():
            raise ConfigError("Config file not found", path=path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() in {'.yaml', '.yml'}:
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError("Cannot read config file", path=path, cause=e)

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping", path=path)

        # relative paths in the file are relative to the file
        base = path.parent
        if "input_dirs" in data:
            dirs = data["input_dirs"]
            dirs = [dirs] if isinstance(dirs, str) else dirs
            data["input_dirs"] = [str(base / d) for d in dirs]
        if "output_dir" in data:
            data["output_dir"] = str(base / data["output_dir"])

        self._logger.info(f"Loaded configuration from: {path}")
        return data

    def load(self, path: Optional[Path] = None,
             overrides: Optional[Dict[str, Any]] = None) -> PrepareConfig:
        """Merge file values with overrides (None values are ignored) and validate."""
        data: Dict[str, Any] = self.read_file(path) if path else {}
        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value

        try:
            config = PrepareConfig(**data)
        except ValidationError as e:
            raise ConfigError("Invalid configuration", path=path, cause=e)

        self._logger.debug("Effective configuration", **config.model_dump(mode="json"))
        return config

    def export(self, config: PrepareConfig, path: Path) -> Path:
        """Export configuration to a YAML or JSON file."""
        path = Path(path)
        config_dict = config.model_dump(mode="json")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                if path.suffix.lower() in {'.yaml', '.yml'}:
                    yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)
                else:
                    json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError("Cannot export config", path=path, cause=e)

        self._logger.info(f"Exported configuration to: {path}")
        return path
