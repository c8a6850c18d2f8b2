"""Rendering of per-bundle POM files and the SDK bill of materials."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, List, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from .extract import ArtifactNamer
from .logging import get_logger
from .models import ComponentMap, ComponentRecord, SelfReferenceError

BOM_VERSION_FORMAT = "%Y%m%d.%H%M%S"


@dataclass(frozen=True)
class PomDependency:
    """A dependency as written into a POM: target coordinates plus the optional flag."""

    artifact_id: str
    version: str
    optional: bool


def default_bom_version(now: Optional[datetime] = None) -> str:
    """Timestamp version used for the BOM when none is configured."""
    return (now or datetime.now(UTC)).astimezone(UTC).strftime(BOM_VERSION_FORMAT)


def _create_env() -> Environment:
    return Environment(
        loader=PackageLoader("mavenizer", "templates"),
        autoescape=select_autoescape(enabled_extensions=("xml", "j2"), default=True),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


class PomWriter:
    """Writes POM and BOM files next to the extracted jars."""

    def __init__(self, group_id: str, namer: ArtifactNamer) -> None:
        self.group_id = group_id
        self.namer = namer
        self.logger = get_logger("pom")
        self._env = _create_env()

    def resolve_dependencies(
        self, record: ComponentRecord, components: ComponentMap
    ) -> List[PomDependency]:
        resolved: List[PomDependency] = []
        for dependency in record.dependencies:
            if dependency.artifact_id == record.artifact_id:
                raise SelfReferenceError(record.identity)
            target = components.get(dependency.artifact_id)
            if target is None:
                self.logger.warning(
                    "%s depends on %s which is not part of the SDK",
                    record.artifact_id,
                    dependency.artifact_id,
                )
                continue
            resolved.append(
                PomDependency(dependency.artifact_id, target.version, dependency.optional)
            )
        return resolved

    def render_pom(self, record: ComponentRecord, components: ComponentMap) -> str:
        template = self._env.get_template("pom.xml.j2")
        return template.render(
            group_id=self.group_id,
            record=record,
            name=_non_blank(record.human_name),
            description=_non_blank(record.description),
            dependencies=self.resolve_dependencies(record, components),
        )

    def write_pom(self, record: ComponentRecord, components: ComponentMap) -> Path:
        content = self.render_pom(record, components)
        path = self.namer.component_path(record, ".pom")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        record.pom_path = path
        self.logger.debug("Wrote %s", path)
        return path

    def write_poms(self, components: ComponentMap) -> List[Path]:
        return [self.write_pom(components[key], components) for key in sorted(components)]

    def render_bom(
        self, records: Iterable[ComponentRecord], *, artifact_id: str, version: str
    ) -> str:
        template = self._env.get_template("bom.xml.j2")
        return template.render(
            group_id=self.group_id,
            artifact_id=artifact_id,
            version=version,
            records=sorted(records, key=lambda record: record.artifact_id),
        )

    def write_bom(
        self, records: Iterable[ComponentRecord], *, artifact_id: str, version: str
    ) -> Path:
        content = self.render_bom(records, artifact_id=artifact_id, version=version)
        path = self.namer.next_path(artifact_id, ".pom")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        self.logger.info("Wrote BOM %s:%s to %s", artifact_id, version, path)
        return path


__all__ = ["BOM_VERSION_FORMAT", "PomDependency", "PomWriter", "default_bom_version"]
