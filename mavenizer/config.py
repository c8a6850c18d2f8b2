"""Configuration loading for mavenizer (.mavenizer.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .metadata import DEFAULT_CORE_SYMBOLIC_NAME

CONFIG_FILENAME = ".mavenizer.yml"
DEFAULT_OUTPUT_DIR = "target/sdk-artifacts"
DEFAULT_BOM_ARTIFACT_ID = "bom"
DEFAULT_RETRY_COUNT = 10

ENV_GROUP_ID = "MAVENIZER_GROUP_ID"
ENV_OUTPUT_DIR = "MAVENIZER_OUTPUT_DIR"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is incomplete."""


@dataclass
class BomConfig:
    """Coordinates of the generated bill of materials."""

    artifact_id: str = DEFAULT_BOM_ARTIFACT_ID
    version: Optional[str] = None


@dataclass
class MavenConfig:
    """How generated artifacts are installed or deployed."""

    executable: str = "mvn"
    deploy_repository_id: Optional[str] = None
    deploy_repository_url: Optional[str] = None
    retry_count: int = DEFAULT_RETRY_COUNT


@dataclass
class MavenizerConfig:
    """Represents the settings defined in .mavenizer.yml."""

    root: Path
    group_id: Optional[str] = None
    sdk_archives: List[Path] = field(default_factory=list)
    output_dir: Optional[Path] = None
    core_symbolic_name: str = DEFAULT_CORE_SYMBOLIC_NAME
    ignored_symbolic_names: List[str] = field(default_factory=list)
    workers: int = 1
    bom: BomConfig = field(default_factory=BomConfig)
    maven: MavenConfig = field(default_factory=MavenConfig)

    @property
    def resolved_output_dir(self) -> Path:
        return self.output_dir or (self.root / DEFAULT_OUTPUT_DIR)

    def require_group_id(self) -> str:
        if not self.group_id:
            raise ConfigError(
                f"group_id must be set in {CONFIG_FILENAME} or via {ENV_GROUP_ID}"
            )
        return self.group_id


def load_config(
    config_path: Path, *, environ: Mapping[str, str] | None = None
) -> MavenizerConfig:
    """Load configuration from disk, applying environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    config = MavenizerConfig(root=root)
    config.group_id = _as_str(data.get("group_id"))
    config.sdk_archives = [root / item for item in _as_str_list(data.get("sdk_archives"))]
    output_dir = _as_str(data.get("output_dir"))
    config.output_dir = root / output_dir if output_dir else None
    config.core_symbolic_name = (
        _as_str(data.get("core_symbolic_name")) or DEFAULT_CORE_SYMBOLIC_NAME
    )
    config.ignored_symbolic_names = _as_str_list(data.get("ignored_symbolic_names"))

    workers = _as_int(data.get("workers"))
    if workers is not None:
        if workers < 1:
            raise ConfigError("workers must be a positive integer")
        config.workers = workers

    bom_data = _as_dict(data.get("bom"))
    if bom_data:
        config.bom = BomConfig(
            artifact_id=_as_str(bom_data.get("artifact_id")) or DEFAULT_BOM_ARTIFACT_ID,
            version=_as_str(bom_data.get("version")),
        )

    maven_data = _as_dict(data.get("maven"))
    if maven_data:
        retry_count = _as_int(maven_data.get("retry_count"))
        config.maven = MavenConfig(
            executable=_as_str(maven_data.get("executable")) or "mvn",
            deploy_repository_id=_as_str(maven_data.get("deploy_repository_id")),
            deploy_repository_url=_as_str(maven_data.get("deploy_repository_url")),
            retry_count=DEFAULT_RETRY_COUNT if retry_count is None else retry_count,
        )

    group_override = env.get(ENV_GROUP_ID)
    if group_override:
        config.group_id = group_override
    output_override = env.get(ENV_OUTPUT_DIR)
    if output_override:
        config.output_dir = Path(output_override).expanduser().resolve()

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"Expected an integer, got {value!r}") from None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BomConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "MavenConfig",
    "MavenizerConfig",
    "load_config",
]
