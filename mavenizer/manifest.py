"""Parsing of ``META-INF/MANIFEST.MF`` and OSGi header values."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional

MANIFEST_NAME = "META-INF/MANIFEST.MF"

BUNDLE_SYMBOLIC_NAME = "Bundle-SymbolicName"
BUNDLE_NAME = "Bundle-Name"
BUNDLE_DESCRIPTION = "Bundle-Description"
BUNDLE_LOCALIZATION = "Bundle-Localization"
IMPORT_PACKAGE = "Import-Package"
DYNAMIC_IMPORT_PACKAGE = "DynamicImport-Package"
EXPORT_PACKAGE = "Export-Package"
REQUIRE_BUNDLE = "Require-Bundle"
FRAGMENT_HOST = "Fragment-Host"

RESOLUTION_DIRECTIVE = "resolution"
SYSTEM_BUNDLE_SYMBOLIC_NAME = "system.bundle"

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")
_UTF8_BOM = b"\xef\xbb\xbf"


class ManifestSyntaxError(ValueError):
    """Raised when a manifest or one of its headers cannot be parsed."""


class Manifest(Mapping[str, str]):
    """Main attributes of a jar manifest with case-insensitive lookup."""

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        self._headers: Dict[str, tuple[str, str]] = {}
        for name, value in (headers or {}).items():
            self._headers[name.lower()] = (name, value)

    def __getitem__(self, name: str) -> str:
        return self._headers[name.lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._headers.values())

    def __len__(self) -> int:
        return len(self._headers)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._headers

    def elements(self, header: str) -> List["ManifestElement"]:
        """Parse ``header`` into elements; an absent header yields an empty list."""
        value = self.get(header)
        if value is None:
            return []
        return parse_header(header, value)


@dataclass(frozen=True)
class ManifestElement:
    """One path of an OSGi header clause together with its parameters."""

    value: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    directives: Mapping[str, str] = field(default_factory=dict)

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def directive(self, name: str) -> Optional[str]:
        return self.directives.get(name)


def read_manifest(content: bytes | str) -> Manifest:
    """Parse the main section of a manifest file.

    Lines end at CR, LF or CRLF only. Continuation lines start with a single
    space and are joined before decoding; the 72-byte wrap may split a
    multi-byte character. The main section ends at the first
    blank line; per-entry sections after it are ignored.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    if raw.startswith(_UTF8_BOM):
        raw = raw[len(_UTF8_BOM):]

    headers: Dict[str, bytearray] = {}
    name: Optional[str] = None
    seen_header = False
    for line_no, line in enumerate(_LINE_BREAK.split(raw), start=1):
        if not line.strip():
            if seen_header:
                break
            continue
        if line.startswith(b" "):
            if name is None:
                raise ManifestSyntaxError(f"Continuation line {line_no} precedes any header")
            headers[name] += line[1:]
            continue
        key, sep, value = line.partition(b":")
        key = key.strip()
        if not sep or not key or (value and not value.startswith(b" ")):
            raise ManifestSyntaxError(
                f"Invalid manifest header on line {line_no}: {_decode(line)!r}"
            )
        name = _decode(key)
        headers[name] = bytearray(value[1:])
        seen_header = True
    return Manifest({header: _decode(bytes(value)) for header, value in headers.items()})


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def parse_header(header: str, value: str) -> List[ManifestElement]:
    """Parse an OSGi header value (``path;path;attr=v;dir:=v, ...``)."""
    elements: List[ManifestElement] = []
    for clause in _split_unquoted(value, ","):
        if not clause.strip():
            raise ManifestSyntaxError(f"Empty clause in {header}: {value!r}")
        paths: List[str] = []
        attributes: Dict[str, str] = {}
        directives: Dict[str, str] = {}
        for part in _split_unquoted(clause, ";"):
            part = part.strip()
            if not part:
                continue
            directive_at = _find_unquoted(part, ":=")
            attribute_at = _find_unquoted(part, "=")
            if directive_at != -1 and (attribute_at == -1 or directive_at < attribute_at):
                key, raw = part[:directive_at], part[directive_at + 2:]
                target = directives
            elif attribute_at != -1:
                key, raw = part[:attribute_at], part[attribute_at + 1:]
                target = attributes
            else:
                if attributes or directives:
                    raise ManifestSyntaxError(
                        f"Path {part!r} follows parameters in {header}"
                    )
                paths.append(_unquote(part, header))
                continue
            key = key.strip()
            # Typed attributes (version:Version=1.0) keep only the name.
            key = key.split(":", 1)[0].strip()
            if not key:
                raise ManifestSyntaxError(f"Parameter without a name in {header}: {part!r}")
            target[key] = _unquote(raw.strip(), header)
        if not paths:
            raise ManifestSyntaxError(f"Clause without a value in {header}: {clause.strip()!r}")
        for path in paths:
            elements.append(ManifestElement(path, dict(attributes), dict(directives)))
    return elements


def _split_unquoted(text: str, separator: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    in_quote = False
    for char in text:
        if char == '"':
            in_quote = not in_quote
        if char == separator and not in_quote:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if in_quote:
        raise ManifestSyntaxError(f"Unterminated quoted string: {text!r}")
    parts.append("".join(current))
    return parts


def _find_unquoted(text: str, token: str) -> int:
    in_quote = False
    for index, char in enumerate(text):
        if char == '"':
            in_quote = not in_quote
        elif not in_quote and text.startswith(token, index):
            return index
    return -1


def _unquote(value: str, header: str) -> str:
    if value.startswith('"'):
        if len(value) < 2 or not value.endswith('"'):
            raise ManifestSyntaxError(f"Unterminated quoted string in {header}: {value!r}")
        return value[1:-1]
    return value


__all__ = [
    "BUNDLE_DESCRIPTION",
    "BUNDLE_LOCALIZATION",
    "BUNDLE_NAME",
    "BUNDLE_SYMBOLIC_NAME",
    "DYNAMIC_IMPORT_PACKAGE",
    "EXPORT_PACKAGE",
    "FRAGMENT_HOST",
    "IMPORT_PACKAGE",
    "MANIFEST_NAME",
    "Manifest",
    "ManifestElement",
    "ManifestSyntaxError",
    "REQUIRE_BUNDLE",
    "RESOLUTION_DIRECTIVE",
    "SYSTEM_BUNDLE_SYMBOLIC_NAME",
    "parse_header",
    "read_manifest",
]
