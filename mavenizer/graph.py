"""Dependency graph synthesis over the retained component set.

Edges come from four sources: fragment hosts, imported packages matched
against exported packages, and required bundles. All of them go through
:meth:`ComponentRecord.add_dependency`, so a MANDATORY edge always wins over
an OPTIONAL one regardless of the order in which they are discovered.

Split packages (exported by more than one component) never produce edges;
this keeps the result free of cycles through ambiguous exporters at the cost
of leaving some components under-connected.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Set

from .logging import get_logger
from .metadata import DEFAULT_CORE_SYMBOLIC_NAME
from .models import ComponentMap, ComponentRecord, RequirementKind

SymbolicNameIndex = Mapping[str, str]
PackageExportIndex = Mapping[str, FrozenSet[str]]


@dataclass
class SynthesisResult:
    """Indexes and counters describing one synthesis run."""

    symbolic_names: SymbolicNameIndex
    exports: PackageExportIndex
    split_packages: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    unresolved_hosts: Set[str] = field(default_factory=set)
    unresolved_requires: Set[str] = field(default_factory=set)
    edge_count: int = 0


def build_symbolic_name_index(components: ComponentMap) -> SymbolicNameIndex:
    """Map each retained symbolic name to the artifactId that carries it."""
    index: Dict[str, str] = {}
    for artifact_id in sorted(components):
        symbolic_name = components[artifact_id].symbolic_name
        if symbolic_name is None:
            raise ValueError(f"{artifact_id} reached synthesis without a symbolic name")
        # Symbolic names are unique among retained bundles; keep the first on a clash.
        index.setdefault(symbolic_name, artifact_id)
    return MappingProxyType(index)


def build_package_export_index(components: ComponentMap) -> PackageExportIndex:
    """Map each exported package to the artifactIds exporting it."""
    exporters: Dict[str, Set[str]] = defaultdict(set)
    for artifact_id, record in components.items():
        for package in record.exported_packages:
            exporters[package].add(artifact_id)
    return MappingProxyType(
        {package: frozenset(ids) for package, ids in sorted(exporters.items())}
    )


class DependencySynthesizer:
    """Computes the dependency edges of every retained component."""

    def __init__(self, core_symbolic_name: str = DEFAULT_CORE_SYMBOLIC_NAME) -> None:
        self.core_symbolic_name = core_symbolic_name
        self.logger = get_logger("graph")

    def synthesize(self, components: ComponentMap) -> SynthesisResult:
        # Both indexes must be complete before any edge is resolved.
        result = SynthesisResult(
            symbolic_names=build_symbolic_name_index(components),
            exports=build_package_export_index(components),
        )
        core_artifact_id = result.symbolic_names.get(self.core_symbolic_name)

        for artifact_id in sorted(components):
            record = components[artifact_id]
            self._link_fragment_host(record, result, core_artifact_id)
            self._link_imports(record, result, core_artifact_id)
            self._link_requires(record, result, core_artifact_id)

        for record in components.values():
            result.edge_count += len(record.dependencies)
            record.freeze()

        self.logger.info(
            "Synthesized %d dependencies across %d bundles (%d split packages skipped)",
            result.edge_count,
            len(components),
            len(result.split_packages),
        )
        return result

    def _link_fragment_host(
        self, record: ComponentRecord, result: SynthesisResult, core: Optional[str]
    ) -> None:
        host = record.fragment_host
        if host is None:
            return
        host_artifact_id = result.symbolic_names.get(host)
        if host_artifact_id is None:
            result.unresolved_hosts.add(host)
            self.logger.debug("%s: fragment host %s is not in the SDK", record.artifact_id, host)
            return
        self._add(record, host_artifact_id, RequirementKind.MANDATORY, core)

    def _link_imports(
        self, record: ComponentRecord, result: SynthesisResult, core: Optional[str]
    ) -> None:
        for imported in sorted(record.imported_packages):
            exporters = result.exports.get(imported.package)
            if not exporters:
                self.logger.debug(
                    "%s: no bundle exports %s", record.artifact_id, imported.package
                )
                continue
            if len(exporters) > 1:
                result.split_packages[imported.package] = exporters
                self.logger.debug(
                    "%s: %s is split across %s; no dependency added",
                    record.artifact_id,
                    imported.package,
                    ", ".join(sorted(exporters)),
                )
                continue
            (exporter,) = exporters
            if exporter == record.artifact_id:
                continue
            self._add(record, exporter, imported.kind, core)

    def _link_requires(
        self, record: ComponentRecord, result: SynthesisResult, core: Optional[str]
    ) -> None:
        for required in sorted(record.required_components):
            target = result.symbolic_names.get(required.symbolic_name)
            if target is None:
                result.unresolved_requires.add(required.symbolic_name)
                self.logger.debug(
                    "%s: required bundle %s is not in the SDK",
                    record.artifact_id,
                    required.symbolic_name,
                )
                continue
            self._add(record, target, required.kind, core)

    @staticmethod
    def _add(
        record: ComponentRecord, target: str, kind: RequirementKind, core: Optional[str]
    ) -> None:
        # Every bundle implicitly depends on the framework itself.
        if target == core and target != record.artifact_id:
            return
        record.add_dependency(target, kind)


def synthesize(
    components: ComponentMap, core_symbolic_name: str = DEFAULT_CORE_SYMBOLIC_NAME
) -> SynthesisResult:
    """Convenience wrapper around :class:`DependencySynthesizer`."""
    return DependencySynthesizer(core_symbolic_name).synthesize(components)


__all__ = [
    "DependencySynthesizer",
    "PackageExportIndex",
    "SymbolicNameIndex",
    "SynthesisResult",
    "build_package_export_index",
    "build_symbolic_name_index",
    "synthesize",
]
