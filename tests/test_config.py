"""Tests for mavenizer.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from mavenizer.config import (
    CONFIG_FILENAME,
    ConfigError,
    MavenizerConfig,
    load_config,
)
from mavenizer.metadata import DEFAULT_CORE_SYMBOLIC_NAME


def _write_config(root: Path, text: str) -> Path:
    path = root / CONFIG_FILENAME
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_config_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    assert isinstance(config, MavenizerConfig)
    assert config.root == tmp_path.resolve()
    assert config.group_id is None
    assert config.sdk_archives == []
    assert config.core_symbolic_name == DEFAULT_CORE_SYMBOLIC_NAME
    assert config.workers == 1
    assert config.bom.artifact_id == "bom"
    assert config.bom.version is None
    assert config.maven.executable == "mvn"
    assert config.maven.retry_count == 10
    assert config.resolved_output_dir == tmp_path.resolve() / "target" / "sdk-artifacts"


def test_parses_all_sections(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
group_id: org.example.equinox
sdk_archives:
  - downloads/equinox-SDK-4.26.zip
output_dir: build/artifacts
core_symbolic_name: org.example.osgi
ignored_symbolic_names:
  - org.eclipse.equinox.launcher
  - org.junit
workers: 4
bom:
  artifact_id: equinox-bom
  version: "4.26"
maven:
  executable: ./mvnw
  deploy_repository_id: releases
  deploy_repository_url: https://repo.example.org/releases
  retry_count: 3
""",
    )

    config = load_config(tmp_path / CONFIG_FILENAME, environ={})
    root = tmp_path.resolve()

    assert config.group_id == "org.example.equinox"
    assert config.sdk_archives == [root / "downloads/equinox-SDK-4.26.zip"]
    assert config.resolved_output_dir == root / "build/artifacts"
    assert config.core_symbolic_name == "org.example.osgi"
    assert config.ignored_symbolic_names == ["org.eclipse.equinox.launcher", "org.junit"]
    assert config.workers == 4
    assert config.bom.artifact_id == "equinox-bom"
    assert config.bom.version == "4.26"
    assert config.maven.executable == "./mvnw"
    assert config.maven.deploy_repository_id == "releases"
    assert config.maven.deploy_repository_url == "https://repo.example.org/releases"
    assert config.maven.retry_count == 3


def test_environment_overrides(tmp_path: Path) -> None:
    _write_config(tmp_path, "group_id: from.file\n")
    override = tmp_path / "elsewhere"

    config = load_config(
        tmp_path,
        environ={"MAVENIZER_GROUP_ID": "from.env", "MAVENIZER_OUTPUT_DIR": str(override)},
    )

    assert config.group_id == "from.env"
    assert config.resolved_output_dir == override.resolve()


def test_empty_file_is_accepted(tmp_path: Path) -> None:
    _write_config(tmp_path, "\n")

    assert load_config(tmp_path, environ={}).group_id is None


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "group_id: [unterminated\n",
        "workers: 0\n",
        "workers: many\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    _write_config(tmp_path, text)

    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={})


def test_require_group_id(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    with pytest.raises(ConfigError, match="MAVENIZER_GROUP_ID"):
        config.require_group_id()

    config.group_id = "org.example"
    assert config.require_group_id() == "org.example"
