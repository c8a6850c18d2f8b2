"""Tests for mavenizer.extract."""

from __future__ import annotations

from pathlib import Path

import pytest

from mavenizer.extract import ArtifactNamer, ExtractionError, SdkExtractor
from tests._fixtures.sdk_builder import SdkBuilder


def test_extract_copies_primary_and_sources(sdk_builder: SdkBuilder, tmp_path: Path) -> None:
    archive = (
        sdk_builder.bundle("org.example.a_1.0.0.jar", {"Bundle-SymbolicName": "org.example.a"})
        .bundle("org.example.a.source_1.0.0.jar", None, {"A.java": "class A {}"})
        .bundle("org.example.b_2.0.0.jar", {"Bundle-SymbolicName": "org.example.b"})
        .entry("plugins/org.example.b_2.0.0/", b"")
        .entry("features/org.example.feature_1.0.0.jar", b"ignored")
        .entry("plugins/about.html", b"<html/>")
        .archive()
    )
    output = tmp_path / "out"

    components = SdkExtractor(output).extract([archive])

    assert list(components) == ["org.example.a", "org.example.b"]
    first = components["org.example.a"]
    assert first.version == "1.0.0"
    assert first.artifact_path == output / "0000-org.example.a-1.0.0.jar"
    assert first.sources_path == output / "0001-org.example.a-1.0.0-sources.jar"
    assert first.artifact_path.read_bytes()[:2] == b"PK"
    assert components["org.example.b"].artifact_path == output / "0002-org.example.b-2.0.0.jar"
    assert components["org.example.b"].sources_path is None


def test_extract_drops_sources_without_primary(
    sdk_builder: SdkBuilder, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    archive = sdk_builder.bundle("org.lonely.source_1.0.0.jar", None, {"x": "y"}).archive()

    components = SdkExtractor(tmp_path / "out").extract([archive])

    assert components == {}
    assert "org.lonely does not have artifact entry" in caplog.text


def test_first_archive_wins(sdk_builder: SdkBuilder, tmp_path: Path) -> None:
    first = sdk_builder.bundle("org.shared_1.0.0.jar", {"Bundle-SymbolicName": "org.shared"}).archive(
        "first.zip"
    )
    second = (
        sdk_builder.bundle("org.shared_2.0.0.jar", {"Bundle-SymbolicName": "org.shared"})
        .bundle("org.only.second_1.0.0.jar", {"Bundle-SymbolicName": "org.only.second"})
        .archive("second.zip")
    )
    output = tmp_path / "out"

    components = SdkExtractor(output).extract([first, second])

    assert components["org.shared"].version == "1.0.0"
    assert "org.only.second" in components
    assert sorted(path.name for path in output.iterdir()) == [
        "0000-org.shared-1.0.0.jar",
        "0001-org.only.second-1.0.0.jar",
    ]


def test_missing_archive_raises(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError) as excinfo:
        SdkExtractor(tmp_path / "out").extract([tmp_path / "nope.zip"])

    assert "nope.zip" in str(excinfo.value)


def test_corrupt_archive_raises(tmp_path: Path) -> None:
    broken = tmp_path / "broken.zip"
    broken.write_bytes(b"not a zip")

    with pytest.raises(ExtractionError):
        SdkExtractor(tmp_path / "out").extract([broken])


def test_namer_counts_across_calls(tmp_path: Path) -> None:
    namer = ArtifactNamer(tmp_path, start=9)

    assert namer.next_path("bom", ".pom").name == "0009-bom.pom"
    assert namer.next_path("bom", ".pom").name == "0010-bom.pom"
