"""Tests for mavenizer.identity."""

from __future__ import annotations

import pytest

from mavenizer.identity import is_payload_entry, parse_entry_name
from mavenizer.models import ArtifactKind, ComponentIdentity


def test_parse_primary_jar() -> None:
    parsed = parse_entry_name("foo.bar_1.2.3.jar")

    assert parsed is not None
    assert parsed.identity == ComponentIdentity("foo.bar", "1.2.3")
    assert parsed.kind is ArtifactKind.PRIMARY


def test_parse_sources_jar() -> None:
    parsed = parse_entry_name("foo.bar.source_1.2.3.jar")

    assert parsed is not None
    assert parsed.identity == ComponentIdentity("foo.bar", "1.2.3")
    assert parsed.kind is ArtifactKind.SOURCES


def test_parse_uses_base_name_of_archive_member() -> None:
    parsed = parse_entry_name("plugins/org.osgi.service.coordinator_1.0.2.201505202024.jar")

    assert parsed is not None
    assert parsed.identity == ComponentIdentity(
        "org.osgi.service.coordinator", "1.0.2.201505202024"
    )


def test_parse_keeps_underscore_inside_version() -> None:
    parsed = parse_entry_name("org.w3c.dom.events_3.0.0.draft20060413_v201105210656.jar")

    assert parsed is not None
    assert parsed.identity == ComponentIdentity(
        "org.w3c.dom.events", "3.0.0.draft20060413_v201105210656"
    )


def test_parse_architecture_qualifier_stays_in_artifact_id() -> None:
    parsed = parse_entry_name("org.eclipse.swt.win32.win32.x86_64_3.122.0.v20221123-2302.jar")

    assert parsed is not None
    assert parsed.identity == ComponentIdentity(
        "org.eclipse.swt.win32.win32.x86_64", "3.122.0.v20221123-2302"
    )
    assert parsed.kind is ArtifactKind.PRIMARY


def test_parse_architecture_qualified_sources_jar() -> None:
    parsed = parse_entry_name("org.eclipse.swt.gtk.linux.x86_64.source_3.122.0.v20221123-2302.jar")

    assert parsed is not None
    assert parsed.identity.artifact_id == "org.eclipse.swt.gtk.linux.x86_64"
    assert parsed.kind is ArtifactKind.SOURCES


@pytest.mark.parametrize(
    ("name", "artifact_id", "version"),
    [
        ("assertj-core_3.23.1.jar", "assertj-core", "3.23.1"),
        ("com_example_lib_1.0.jar", "com_example_lib", "1.0"),
        ("org.example_vnext.jar", "org.example", "vnext"),
    ],
)
def test_parse_generic_boundary(name: str, artifact_id: str, version: str) -> None:
    parsed = parse_entry_name(name)

    assert parsed is not None
    assert parsed.identity == ComponentIdentity(artifact_id, version)


@pytest.mark.parametrize(
    "name",
    [
        "plugins/readme.txt",
        "plugins/org.example.jar",
        "plugins/org.example_1.0.zip",
        "plugins/org.eclipse.osgi.tests_3.18.0.jar",
        "plugins/_1.0.jar",
        "plugins/org.example_.jar",
    ],
)
def test_parse_skips_irrelevant_names(name: str) -> None:
    assert parse_entry_name(name) is None


def test_is_payload_entry_requires_plugins_directory() -> None:
    assert is_payload_entry("plugins/org.example_1.0.jar")
    assert not is_payload_entry("features/org.example_1.0.jar")
    assert not is_payload_entry("plugins/nested/", is_dir=True)
    assert not is_payload_entry("plugins/")
