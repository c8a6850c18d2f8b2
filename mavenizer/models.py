"""Core data models shared across mavenizer components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .metadata import BundleMetadata


class SelfReferenceError(RuntimeError):
    """Raised when a component would be made to depend on itself."""

    def __init__(self, identity: "ComponentIdentity") -> None:
        super().__init__(f"Self reference in dependencies: {identity}")
        self.identity = identity


@total_ordering
class RequirementKind(Enum):
    """How strongly a component needs one of its dependencies."""

    MANDATORY = "mandatory"
    OPTIONAL = "optional"

    @classmethod
    def from_resolution(cls, resolution: Optional[str]) -> "RequirementKind":
        """Map an OSGi ``resolution:=`` directive value onto a kind."""
        if resolution is not None and resolution.strip() == "optional":
            return cls.OPTIONAL
        return cls.MANDATORY

    @property
    def rank(self) -> int:
        return 0 if self is RequirementKind.MANDATORY else 1

    def merge(self, other: "RequirementKind") -> "RequirementKind":
        """Return the stronger of the two kinds; MANDATORY always wins."""
        return self if self.rank <= other.rank else other

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RequirementKind):
            return NotImplemented
        return self.rank < other.rank


class ArtifactKind(Enum):
    """Which payload of a component an archive member carries."""

    PRIMARY = "primary"
    SOURCES = "sources"


@dataclass(frozen=True, order=True)
class ComponentIdentity:
    """Identity of a component derived from its file name."""

    artifact_id: str
    version: str

    def __str__(self) -> str:
        return f"{self.artifact_id}:{self.version}"


@dataclass(frozen=True, order=True)
class ImportedPackage:
    package: str
    kind: RequirementKind


@dataclass(frozen=True, order=True)
class RequiredComponent:
    symbolic_name: str
    kind: RequirementKind


@dataclass(frozen=True, order=True)
class Dependency:
    """Outgoing edge from one component to another, keyed by artifactId."""

    artifact_id: str
    kind: RequirementKind

    @property
    def optional(self) -> bool:
        return self.kind is RequirementKind.OPTIONAL


@dataclass
class ComponentRecord:
    """Working state for one bundle as it moves through the pipeline."""

    identity: ComponentIdentity
    artifact_path: Optional[Path] = None
    sources_path: Optional[Path] = None
    pom_path: Optional[Path] = None
    symbolic_name: Optional[str] = None
    human_name: Optional[str] = None
    description: Optional[str] = None
    imported_packages: FrozenSet[ImportedPackage] = frozenset()
    exported_packages: FrozenSet[str] = frozenset()
    required_components: FrozenSet[RequiredComponent] = frozenset()
    fragment_host: Optional[str] = None
    _edges: Dict[str, RequirementKind] = field(default_factory=dict, repr=False)
    _metadata_applied: bool = field(default=False, repr=False)
    _frozen: bool = field(default=False, repr=False)

    @classmethod
    def create(cls, artifact_id: str, version: str) -> "ComponentRecord":
        return cls(identity=ComponentIdentity(artifact_id, version))

    @property
    def artifact_id(self) -> str:
        return self.identity.artifact_id

    @property
    def version(self) -> str:
        return self.identity.version

    @property
    def dependencies(self) -> Tuple[Dependency, ...]:
        """Edges sorted by target artifactId, then kind."""
        return tuple(
            sorted(Dependency(target, kind) for target, kind in self._edges.items())
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    def attach_payload(self, kind: ArtifactKind, path: Path) -> None:
        """Record where the primary or sources payload was materialized."""
        if kind is ArtifactKind.SOURCES:
            if self.sources_path is not None:
                raise ValueError(f"{self.identity} already has a sources payload")
            self.sources_path = path
        else:
            if self.artifact_path is not None:
                raise ValueError(f"{self.identity} already has a primary payload")
            self.artifact_path = path

    def apply_metadata(self, metadata: "BundleMetadata") -> None:
        """Copy manifest-derived fields onto the record; allowed once."""
        if self._metadata_applied:
            raise ValueError(f"Metadata already applied to {self.identity}")
        self._metadata_applied = True
        self.symbolic_name = metadata.symbolic_name
        self.human_name = metadata.human_name
        self.description = metadata.description
        self.imported_packages = frozenset(metadata.imported_packages)
        self.exported_packages = frozenset(metadata.exported_packages)
        self.required_components = frozenset(metadata.required_components)
        self.fragment_host = metadata.fragment_host

    def add_dependency(self, artifact_id: str, kind: RequirementKind) -> None:
        """Insert an edge, letting MANDATORY replace OPTIONAL but never the reverse."""
        if self._frozen:
            raise RuntimeError(f"Dependencies of {self.identity} are already final")
        if artifact_id == self.artifact_id:
            raise SelfReferenceError(self.identity)
        existing = self._edges.get(artifact_id)
        self._edges[artifact_id] = kind if existing is None else existing.merge(kind)

    def freeze(self) -> None:
        self._frozen = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artifactId": self.artifact_id,
            "version": self.version,
            "symbolicName": self.symbolic_name,
            "name": self.human_name,
            "description": self.description,
            "fragmentHost": self.fragment_host,
            "dependencies": [
                {"artifactId": dep.artifact_id, "optional": dep.optional}
                for dep in self.dependencies
            ],
        }


ComponentMap = Dict[str, ComponentRecord]


__all__ = [
    "ArtifactKind",
    "ComponentIdentity",
    "ComponentMap",
    "ComponentRecord",
    "Dependency",
    "ImportedPackage",
    "RequiredComponent",
    "RequirementKind",
    "SelfReferenceError",
]
