"""Derive component identities from SDK archive member names."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Optional

from .models import ArtifactKind, ComponentIdentity

PLUGINS_PREFIX = "plugins/"
JAR_SUFFIX = ".jar"
SOURCES_INFIX = ".source_"
TESTS_INFIX = ".tests_"

# Qualifiers that sit right before the version and contain an underscore
# themselves, e.g. org.eclipse.swt.gtk.linux.x86_64_3.122.0.v20221123-2302.jar.
IRREGULAR_QUALIFIERS = (".x86_64",)

_VERSION_BOUNDARY = re.compile(r"_(?=\d)")


@dataclass(frozen=True)
class ParsedEntry:
    """Identity plus the payload kind an archive member provides."""

    identity: ComponentIdentity
    kind: ArtifactKind


def is_payload_entry(name: str, *, is_dir: bool = False) -> bool:
    """Return True for regular files inside the SDK ``plugins/`` directory."""
    return not is_dir and name.startswith(PLUGINS_PREFIX) and not name.endswith("/")


def parse_entry_name(name: str) -> Optional[ParsedEntry]:
    """Split ``<artifactId>_<version>.jar`` style names into an identity.

    Names that are not jars, have no underscore, or belong to the SDK's own
    test bundles yield ``None``.
    """
    file_name = posixpath.basename(name)
    if not file_name.endswith(JAR_SUFFIX) or "_" not in file_name:
        return None

    base_name = file_name[: -len(JAR_SUFFIX)]
    if TESTS_INFIX in base_name:
        return None

    if SOURCES_INFIX in base_name:
        artifact_id, version = base_name.split(SOURCES_INFIX, 1)
        return _build(artifact_id, version, ArtifactKind.SOURCES)

    for qualifier in IRREGULAR_QUALIFIERS:
        infix = f"{qualifier}_"
        if infix in base_name:
            head, version = base_name.split(infix, 1)
            return _build(head + qualifier, version, ArtifactKind.PRIMARY)

    artifact_id, version = _split_generic(base_name)
    return _build(artifact_id, version, ArtifactKind.PRIMARY)


def _split_generic(base_name: str) -> tuple[str, str]:
    # Versions start with a digit; an underscore inside the version part
    # (org.w3c.dom.events_3.0.0.draft20060413_v201105210656) comes later.
    match = _VERSION_BOUNDARY.search(base_name)
    if match is not None:
        return base_name[: match.start()], base_name[match.end():]
    artifact_id, version = base_name.split("_", 1)
    return artifact_id, version


def _build(artifact_id: str, version: str, kind: ArtifactKind) -> Optional[ParsedEntry]:
    if not artifact_id or not version:
        return None
    return ParsedEntry(ComponentIdentity(artifact_id, version), kind)


__all__ = [
    "IRREGULAR_QUALIFIERS",
    "ParsedEntry",
    "is_payload_entry",
    "parse_entry_name",
]
