"""YAML/JSON backed storage of the global and per-source configuration."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml

from .models import DEFAULT_SOURCES, GlobalConfig, SourceConfig

HOME_ENV = "NEWSFLASH_HOME"
GLOBAL_CONFIG_NAME = "global_config.yaml"
READABLE_SUFFIXES = frozenset({".yaml", ".yml", ".json"})

_UNSAFE_FILENAME = re.compile(r"[^a-z0-9_-]+")


def _file_stem(source_id: str) -> str:
    return _UNSAFE_FILENAME.sub("-", source_id.lower()).strip("-") or "source"


def _load_mapping(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as stream:
        data = json.load(stream) if path.suffix == ".json" else yaml.safe_load(stream)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: expected a mapping at top level, got {type(data).__name__}")
    return data


def _dump_mapping(path: Path, data: dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix == ".json":
            json.dump(data, stream, ensure_ascii=False, indent=2)
        else:
            yaml.safe_dump(data, stream, allow_unicode=True, sort_keys=False)


@dataclass(slots=True)
class ConfigLocator:
    """Filesystem layout under the newsflash home directory.

    ``NEWSFLASH_HOME`` wins over ``project_root``; without either the
    checkout directory is used.
    """

    project_root: Path | None = None
    data_dir: Path = field(init=False)
    sources_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    def __post_init__(self) -> None:
        override = os.environ.get(HOME_ENV)
        if override:
            home = Path(override).expanduser()
        else:
            home = self.project_root or Path(__file__).resolve().parents[2]
        self.project_root = home.resolve()
        self.data_dir = self.project_root / "data"
        self.sources_dir = self.data_dir / "sources"
        self.logs_dir = self.project_root / "logs"
        for directory in (self.sources_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_NAME


class ConfigRepository:
    """Validated access to ``global_config.yaml`` and ``sources/*.yaml``."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        """Return the cached global config, writing defaults on first use."""

        if self._global is None:
            path = self.locator.global_config_path()
            if path.is_file():
                self._global = GlobalConfig.model_validate(_load_mapping(path))
            else:
                self.save_global_config(GlobalConfig())
        return self._global

    def save_global_config(self, config: GlobalConfig) -> None:
        _dump_mapping(self.locator.global_config_path(), config.model_dump(mode="json"))
        self._global = config

    def state_path(self) -> Path:
        return self.load_global_config().resolved_state_path(self.locator.project_root)

    def source_path(self, source_id: str) -> Path:
        return self.locator.sources_dir / f"{_file_stem(source_id)}.yaml"

    def list_source_files(self) -> Iterator[Path]:
        return (
            path
            for path in sorted(self.locator.sources_dir.iterdir())
            if path.is_file() and path.suffix in READABLE_SUFFIXES
        )

    def list_sources(self) -> list[SourceConfig]:
        """Return configured sources ordered by ``position``, then file name.

        An empty sources directory is seeded with the built-in sources first.
        """

        self.ensure_default_sources()
        by_id: dict[str, SourceConfig] = {}
        for path in self.list_source_files():
            source = self.load_source(path)
            if source.source_id in by_id:
                raise ValueError(f"source_id {source.source_id!r} is defined twice (see {path.name})")
            by_id[source.source_id] = source
        return sorted(by_id.values(), key=lambda source: source.position)

    def load_source(self, identifier: str | Path) -> SourceConfig:
        path = identifier if isinstance(identifier, Path) else self.source_path(identifier)
        if not path.is_file():
            raise FileNotFoundError(f"No configuration for source {identifier!s}")
        return SourceConfig.model_validate(_load_mapping(path))

    def save_source(self, config: SourceConfig) -> Path:
        path = self.source_path(config.source_id)
        _dump_mapping(path, config.model_dump(mode="json", exclude_none=True))
        return path

    def delete_source(self, source_id: str) -> None:
        self.source_path(source_id).unlink(missing_ok=True)

    def ensure_default_sources(self) -> list[Path]:
        if next(self.list_source_files(), None) is not None:
            return []
        return [self.save_source(source) for source in DEFAULT_SOURCES]


__all__ = ["ConfigLocator", "ConfigRepository", "READABLE_SUFFIXES"]
