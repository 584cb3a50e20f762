"""Configuration loading helpers for monero-blocks."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import GlobalConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "config.yaml"
HOME_ENV = "MONERO_BLOCKS_HOME"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None, path: Path | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self.path = path or self.locator.config_path()
        if self.path.suffix not in CONFIG_EXTENSIONS:
            raise ValueError(f"Unsupported configuration format: {self.path}")
        self._cache: GlobalConfig | None = None

    def load(self) -> GlobalConfig:
        if self._cache is not None:
            return self._cache
        if self.path.exists():
            config = GlobalConfig.model_validate(_read_file(self.path))
        else:
            config = GlobalConfig()
            self.save(config)
        self._cache = config
        return config

    def save(self, config: GlobalConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        _write_file(self.path, config.model_dump(mode="json"))
        self._cache = config

    def resolve(self, path: Path) -> Path:
        """Anchor a relative path from the config at the project root."""

        if path.is_absolute():
            return path
        return (self.locator.project_root / path).resolve()


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository"]
