"""Tests for mavenizer.pom."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path

import pytest

from mavenizer.extract import ArtifactNamer
from mavenizer.models import ComponentRecord, RequirementKind
from mavenizer.pom import PomWriter, default_bom_version

NS = {"m": "http://maven.apache.org/POM/4.0.0"}


def _components() -> dict[str, ComponentRecord]:
    core = ComponentRecord.create("org.example.core", "1.2.0")
    core.human_name = "Core & Friends"
    core.description = "   "
    ui = ComponentRecord.create("org.example.ui", "3.0.0")
    ui.add_dependency("org.example.core", RequirementKind.MANDATORY)
    ui.add_dependency("org.example.extra", RequirementKind.OPTIONAL)
    extra = ComponentRecord.create("org.example.extra", "0.9.0")
    return {record.artifact_id: record for record in (core, ui, extra)}


def test_pom_lists_dependencies_with_target_versions(tmp_path: Path) -> None:
    components = _components()
    writer = PomWriter("org.example.sdk", ArtifactNamer(tmp_path))

    path = writer.write_pom(components["org.example.ui"], components)

    assert path == tmp_path / "0000-org.example.ui-3.0.0.pom"
    assert components["org.example.ui"].pom_path == path
    text = path.read_text(encoding="utf-8")
    assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "best effort generated dependencies" in text

    project = ET.fromstring(text)
    assert project.findtext("m:groupId", namespaces=NS) == "org.example.sdk"
    assert project.findtext("m:artifactId", namespaces=NS) == "org.example.ui"
    deps = project.findall("m:dependencies/m:dependency", NS)
    assert [
        (
            dep.findtext("m:artifactId", namespaces=NS),
            dep.findtext("m:version", namespaces=NS),
            dep.findtext("m:optional", namespaces=NS),
        )
        for dep in deps
    ] == [
        ("org.example.core", "1.2.0", None),
        ("org.example.extra", "0.9.0", "true"),
    ]


def test_pom_escapes_name_and_skips_blank_description(tmp_path: Path) -> None:
    components = _components()
    writer = PomWriter("org.example.sdk", ArtifactNamer(tmp_path))

    text = writer.render_pom(components["org.example.core"], components)

    assert "Core &amp; Friends" in text
    project = ET.fromstring(text)
    assert project.findtext("m:name", namespaces=NS) == "Core & Friends"
    assert project.find("m:description", NS) is None
    assert project.find("m:dependencies", NS) is None


def test_pom_skips_dependencies_outside_the_sdk(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    components = _components()
    del components["org.example.extra"]
    writer = PomWriter("org.example.sdk", ArtifactNamer(tmp_path))

    resolved = writer.resolve_dependencies(components["org.example.ui"], components)

    assert [dep.artifact_id for dep in resolved] == ["org.example.core"]
    assert "not part of the SDK" in caplog.text


def test_bom_lists_every_component(tmp_path: Path) -> None:
    components = _components()
    writer = PomWriter("org.example.sdk", ArtifactNamer(tmp_path, start=3))

    path = writer.write_bom(components.values(), artifact_id="bom", version="20240102.030405")

    assert path.name == "0003-bom.pom"
    project = ET.fromstring(path.read_text(encoding="utf-8"))
    assert project.findtext("m:packaging", namespaces=NS) == "pom"
    assert project.findtext("m:version", namespaces=NS) == "20240102.030405"
    managed = project.findall("m:dependencyManagement/m:dependencies/m:dependency", NS)
    assert [dep.findtext("m:artifactId", namespaces=NS) for dep in managed] == [
        "org.example.core",
        "org.example.extra",
        "org.example.ui",
    ]


def test_default_bom_version_uses_utc_timestamp() -> None:
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert default_bom_version(moment) == "20240102.030405"
