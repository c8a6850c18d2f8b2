"""Bundle metadata extraction from a component's primary jar."""

from __future__ import annotations

import re
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .logging import get_logger
from .manifest import (
    BUNDLE_DESCRIPTION,
    BUNDLE_LOCALIZATION,
    BUNDLE_NAME,
    BUNDLE_SYMBOLIC_NAME,
    DYNAMIC_IMPORT_PACKAGE,
    EXPORT_PACKAGE,
    FRAGMENT_HOST,
    IMPORT_PACKAGE,
    MANIFEST_NAME,
    REQUIRE_BUNDLE,
    RESOLUTION_DIRECTIVE,
    SYSTEM_BUNDLE_SYMBOLIC_NAME,
    Manifest,
    ManifestSyntaxError,
    read_manifest,
)
from .models import ComponentRecord, ImportedPackage, RequiredComponent, RequirementKind

DEFAULT_CORE_SYMBOLIC_NAME = "org.eclipse.osgi"
DEFAULT_LOCALIZATION = "OSGI-INF/l10n/bundle"
FALLBACK_PROPERTY_SOURCES = ("fragment.properties", "plugin.properties")

_UNICODE_ESCAPE = re.compile(r"\\u([0-9a-fA-F]{4})")
_SIMPLE_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


class MetadataError(RuntimeError):
    """Raised when a component payload cannot be read."""

    def __init__(self, message: str, component: Optional[str] = None) -> None:
        super().__init__(message)
        self.component = component


class MissingManifestError(MetadataError):
    """Raised when a component payload carries no manifest."""


class InvalidManifestError(MetadataError):
    """Raised when the manifest or one of its OSGi headers is malformed."""


@dataclass
class BundleMetadata:
    """Manifest-derived facts about one bundle."""

    symbolic_name: Optional[str] = None
    human_name: Optional[str] = None
    description: Optional[str] = None
    imported_packages: List[ImportedPackage] = field(default_factory=list)
    exported_packages: List[str] = field(default_factory=list)
    required_components: List[RequiredComponent] = field(default_factory=list)
    fragment_host: Optional[str] = None


class PropertySources:
    """Ordered property files; the first source with a non-blank value for a key wins."""

    def __init__(self, sources: Sequence[Mapping[str, str]] = ()) -> None:
        self._sources = list(sources)

    def lookup(self, key: str) -> Optional[str]:
        for source in self._sources:
            value = source.get(key)
            if value is not None and value.strip():
                return value
        return None

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """Resolve a ``%key`` placeholder; literal values pass through."""
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        if value.startswith("%"):
            resolved = self.lookup(value[1:])
            return resolved.strip() if resolved is not None else None
        return value


class MetadataReader:
    """Reads OSGi headers from each component's jar and applies them to its record."""

    def __init__(self, core_symbolic_name: str = DEFAULT_CORE_SYMBOLIC_NAME) -> None:
        self.core_symbolic_name = core_symbolic_name
        self.logger = get_logger("metadata")

    def read(self, record: ComponentRecord) -> BundleMetadata:
        """Return the metadata of ``record``'s primary payload without mutating it."""
        path = record.artifact_path
        component = record.artifact_id
        if path is None:
            raise MetadataError(f"{record.identity} has no primary payload", component)
        try:
            with zipfile.ZipFile(path) as jar:
                try:
                    raw_manifest = jar.read(MANIFEST_NAME)
                except KeyError:
                    raise MissingManifestError(
                        f"{record.identity} is missing {MANIFEST_NAME}", component
                    ) from None
                manifest = read_manifest(raw_manifest)
                properties = self._load_property_sources(jar, manifest)
            return self.parse(manifest, properties)
        except ManifestSyntaxError as exc:
            raise InvalidManifestError(
                f"{record.identity} has a malformed manifest: {exc}", component
            ) from exc
        except (OSError, zipfile.BadZipFile) as exc:
            raise MetadataError(
                f"Failed to read {path} for {record.identity}: {exc}", component
            ) from exc

    def parse(
        self, manifest: Manifest, properties: PropertySources | None = None
    ) -> BundleMetadata:
        """Translate parsed manifest headers into a :class:`BundleMetadata`."""
        properties = properties or PropertySources()
        metadata = BundleMetadata()

        symbolic_names = manifest.elements(BUNDLE_SYMBOLIC_NAME)
        if symbolic_names:
            metadata.symbolic_name = symbolic_names[0].value

        imports: Dict[str, RequirementKind] = {}
        for element in manifest.elements(IMPORT_PACKAGE):
            kind = RequirementKind.from_resolution(element.directive(RESOLUTION_DIRECTIVE))
            _merge_kind(imports, element.value, kind)
        for element in manifest.elements(DYNAMIC_IMPORT_PACKAGE):
            if element.value.endswith("*"):
                continue
            _merge_kind(imports, element.value, RequirementKind.OPTIONAL)
        metadata.imported_packages = [
            ImportedPackage(package, kind) for package, kind in sorted(imports.items())
        ]

        metadata.exported_packages = sorted(
            {element.value for element in manifest.elements(EXPORT_PACKAGE)}
        )

        requires: Dict[str, RequirementKind] = {}
        for element in manifest.elements(REQUIRE_BUNDLE):
            kind = RequirementKind.from_resolution(element.directive(RESOLUTION_DIRECTIVE))
            _merge_kind(requires, element.value, kind)
        metadata.required_components = [
            RequiredComponent(name, kind) for name, kind in sorted(requires.items())
        ]

        hosts = manifest.elements(FRAGMENT_HOST)
        if hosts:
            host = hosts[0].value
            if host == SYSTEM_BUNDLE_SYMBOLIC_NAME:
                host = self.core_symbolic_name
            metadata.fragment_host = host

        metadata.human_name = properties.resolve(manifest.get(BUNDLE_NAME))
        metadata.description = properties.resolve(manifest.get(BUNDLE_DESCRIPTION))
        return metadata

    def read_into(self, record: ComponentRecord) -> bool:
        """Apply metadata to ``record``; return False when it has no symbolic name."""
        metadata = self.read(record)
        record.apply_metadata(metadata)
        if metadata.symbolic_name is None:
            self.logger.debug("%s declares no %s", record.identity, BUNDLE_SYMBOLIC_NAME)
            return False
        return True

    def read_all(self, records: Iterable[ComponentRecord], *, workers: int = 1) -> None:
        """Read every record, optionally in parallel.

        Each task touches only its own record. Every task has finished when this
        returns; if any failed, the failure of the first record (by artifactId)
        is raised.
        """
        ordered = sorted(records, key=lambda record: record.artifact_id)
        if workers <= 1 or len(ordered) <= 1:
            for record in ordered:
                self.read_into(record)
            return

        failures: Dict[str, BaseException] = {}
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {record.artifact_id: pool.submit(self.read_into, record) for record in ordered}
        for artifact_id, future in futures.items():
            exc = future.exception()
            if exc is not None:
                failures[artifact_id] = exc
        if failures:
            first = min(failures)
            raise failures[first]

    def _load_property_sources(self, jar: zipfile.ZipFile, manifest: Manifest) -> PropertySources:
        localization = manifest.get(BUNDLE_LOCALIZATION, "").strip() or DEFAULT_LOCALIZATION
        candidates = [f"{localization}.properties", *FALLBACK_PROPERTY_SOURCES]
        names = set(jar.namelist())
        sources: List[Dict[str, str]] = []
        for candidate in dict.fromkeys(candidates):
            if candidate not in names:
                continue
            sources.append(load_properties(_decode_properties(jar.read(candidate))))
        return PropertySources(sources)


def _merge_kind(target: Dict[str, RequirementKind], key: str, kind: RequirementKind) -> None:
    existing = target.get(key)
    target[key] = kind if existing is None else existing.merge(kind)


def _decode_properties(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("iso-8859-1")


def load_properties(text: str) -> Dict[str, str]:
    """Parse Java ``.properties`` content into a dict."""
    result: Dict[str, str] = {}
    for logical in _logical_lines(text):
        key, value = _split_property(logical)
        if key:
            result[_unescape(key)] = _unescape(value)
    return result


def _logical_lines(text: str) -> Iterable[str]:
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip(" \t\f")
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def _split_property(line: str) -> tuple[str, str]:
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in "=: \t\f":
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")
    return key, rest


def _unescape(value: str) -> str:
    out: List[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char != "\\" or index + 1 >= len(value):
            out.append(char)
            index += 1
            continue
        nxt = value[index + 1]
        if nxt == "u" and _UNICODE_ESCAPE.match(value, index):
            out.append(chr(int(value[index + 2 : index + 6], 16)))
            index += 6
            continue
        out.append(_SIMPLE_ESCAPES.get(nxt, nxt))
        index += 2
    return "".join(out)


__all__ = [
    "BundleMetadata",
    "DEFAULT_CORE_SYMBOLIC_NAME",
    "InvalidManifestError",
    "MetadataError",
    "MetadataReader",
    "MissingManifestError",
    "PropertySources",
    "load_properties",
]
