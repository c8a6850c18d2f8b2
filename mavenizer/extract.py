"""Extraction of bundle jars out of SDK zip archives."""

from __future__ import annotations

import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

from .identity import is_payload_entry, parse_entry_name
from .logging import get_logger
from .models import ArtifactKind, ComponentMap, ComponentRecord

_COPY_BUFFER = 0x10000


class ExtractionError(RuntimeError):
    """Raised when an SDK archive cannot be read."""

    def __init__(self, archive: Path, message: str) -> None:
        super().__init__(f"{archive}: {message}")
        self.archive = archive


class ArtifactNamer:
    """Hands out run-wide numbered file names inside the output directory."""

    def __init__(self, output_dir: Path, start: int = 0) -> None:
        self.output_dir = output_dir
        self._counter = start

    def next_path(self, stem: str, suffix: str) -> Path:
        number = f"{self._counter:04d}"
        self._counter += 1
        return self.output_dir / f"{number}-{stem}{suffix}"

    def component_path(self, record: ComponentRecord, suffix: str) -> Path:
        return self.next_path(f"{record.artifact_id}-{record.version}", suffix)


@dataclass
class _ArchiveEntries:
    record: ComponentRecord
    primary: Optional[zipfile.ZipInfo] = None
    sources: Optional[zipfile.ZipInfo] = None


class SdkExtractor:
    """Copies bundle jars from SDK archives and creates one record per artifactId."""

    def __init__(self, output_dir: Path, namer: ArtifactNamer | None = None) -> None:
        self.output_dir = output_dir
        self.namer = namer or ArtifactNamer(output_dir)
        self.logger = get_logger("extract")

    def extract(self, archives: Sequence[Path]) -> ComponentMap:
        """Extract every archive; the first archive naming an artifactId wins."""
        components: ComponentMap = {}
        for archive in archives:
            for artifact_id, record in self.extract_archive(Path(archive), skip=components).items():
                components.setdefault(artifact_id, record)
        return dict(sorted(components.items()))

    def extract_archive(
        self, archive: Path, *, skip: Iterable[str] = ()
    ) -> Dict[str, ComponentRecord]:
        """Extract one archive, leaving out artifactIds listed in ``skip``."""
        if not archive.is_file():
            raise ExtractionError(archive, "SDK archive not found")
        skipped = set(skip)
        try:
            with zipfile.ZipFile(archive) as sdk:
                found = self._scan(sdk)
                self.output_dir.mkdir(parents=True, exist_ok=True)
                extracted: Dict[str, ComponentRecord] = {}
                for artifact_id in sorted(found):
                    entries = found[artifact_id]
                    if entries.primary is None:
                        self.logger.warning("%s does not have artifact entry", artifact_id)
                        continue
                    if artifact_id in skipped:
                        self.logger.debug("%s already provided by an earlier archive", artifact_id)
                        continue
                    record = entries.record
                    self._copy(sdk, entries.primary, record, ArtifactKind.PRIMARY, ".jar")
                    if entries.sources is not None:
                        self._copy(sdk, entries.sources, record, ArtifactKind.SOURCES, "-sources.jar")
                    extracted[artifact_id] = record
        except (OSError, zipfile.BadZipFile) as exc:
            raise ExtractionError(archive, str(exc)) from exc
        return extracted

    def _scan(self, sdk: zipfile.ZipFile) -> Dict[str, _ArchiveEntries]:
        found: Dict[str, _ArchiveEntries] = {}
        for info in sdk.infolist():
            if not is_payload_entry(info.filename, is_dir=info.is_dir()):
                self.logger.debug("Skipping archive entry %s", info.filename)
                continue
            parsed = parse_entry_name(info.filename)
            if parsed is None:
                continue
            identity = parsed.identity
            entries = found.get(identity.artifact_id)
            if entries is None:
                record = ComponentRecord(identity=identity)
                entries = found[identity.artifact_id] = _ArchiveEntries(record)
            if parsed.kind is ArtifactKind.SOURCES:
                entries.sources = entries.sources or info
            else:
                entries.primary = entries.primary or info
            self.logger.debug("Added artifactId %s for entry %s", identity.artifact_id, info.filename)
        return found

    def _copy(
        self,
        sdk: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        record: ComponentRecord,
        kind: ArtifactKind,
        suffix: str,
    ) -> None:
        target = self.namer.component_path(record, suffix)
        self.logger.info("Extracting %s as %s", info.filename, target)
        with sdk.open(info) as source, target.open("wb") as sink:
            shutil.copyfileobj(source, sink, _COPY_BUFFER)
        record.attach_payload(kind, target)


__all__ = ["ArtifactNamer", "ExtractionError", "SdkExtractor"]
