"""Pipeline orchestration for the analyze/generate/publish flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ConfigError, MavenizerConfig
from .extract import ArtifactNamer, ExtractionError, SdkExtractor
from .graph import DependencySynthesizer, SynthesisResult
from .installer import MavenInstaller, bom_request, component_request
from .logging import get_logger
from .metadata import MetadataError, MetadataReader
from .models import ComponentMap, SelfReferenceError
from .pom import PomWriter, default_bom_version
from .retention import filter_components


class MavenizerError(RuntimeError):
    """Fatal pipeline failure, naming the first offending component when known."""

    def __init__(self, message: str, component: Optional[str] = None) -> None:
        super().__init__(message)
        self.component = component


@dataclass
class AnalysisOutcome:
    """Retained components after dependency synthesis."""

    components: ComponentMap
    dropped: List[str] = field(default_factory=list)
    synthesis: Optional[SynthesisResult] = None


@dataclass
class GenerateOutcome:
    """Files written by a generate run."""

    analysis: AnalysisOutcome
    pom_paths: List[Path]
    bom_path: Path
    bom_artifact_id: str
    bom_version: str


class Mavenizer:
    """Coordinates extraction, metadata reading, filtering and synthesis."""

    def __init__(
        self,
        config: MavenizerConfig,
        *,
        extractor: SdkExtractor | None = None,
        reader: MetadataReader | None = None,
        synthesizer: DependencySynthesizer | None = None,
        installer: MavenInstaller | None = None,
    ) -> None:
        self.config = config
        self.namer = extractor.namer if extractor is not None else ArtifactNamer(
            config.resolved_output_dir
        )
        self.extractor = extractor or SdkExtractor(config.resolved_output_dir, self.namer)
        self.reader = reader or MetadataReader(config.core_symbolic_name)
        self.synthesizer = synthesizer or DependencySynthesizer(config.core_symbolic_name)
        self._installer = installer
        self.logger = get_logger("pipeline")

    def analyze(self, archives: Sequence[Path] | None = None) -> AnalysisOutcome:
        """Extract the SDK archives and compute every retained bundle's dependencies."""
        selected = list(archives) if archives else list(self.config.sdk_archives)
        if not selected:
            raise ConfigError("No SDK archives given; pass them or set sdk_archives")
        self.logger.info("Analyzing %d SDK archive(s)", len(selected))

        try:
            components = self.extractor.extract(selected)
        except ExtractionError as exc:
            raise MavenizerError(str(exc)) from exc
        self.logger.debug("Extracted %d bundles", len(components))

        try:
            self.reader.read_all(components.values(), workers=self.config.workers)
        except MetadataError as exc:
            raise MavenizerError(str(exc), exc.component) from exc

        dropped = filter_components(components, frozenset(self.config.ignored_symbolic_names))
        self.logger.info("Retained %d bundles, ignored %d", len(components), len(dropped))

        try:
            synthesis = self.synthesizer.synthesize(components)
        except SelfReferenceError as exc:
            raise MavenizerError(str(exc), exc.identity.artifact_id) from exc
        return AnalysisOutcome(components=components, dropped=dropped, synthesis=synthesis)

    def generate(self, archives: Sequence[Path] | None = None) -> GenerateOutcome:
        """Analyze, then write one POM per bundle plus the BOM."""
        group_id = self.config.require_group_id()
        analysis = self.analyze(archives)
        writer = PomWriter(group_id, self.namer)
        try:
            pom_paths = writer.write_poms(analysis.components)
        except SelfReferenceError as exc:
            raise MavenizerError(str(exc), exc.identity.artifact_id) from exc

        bom_artifact_id = self.config.bom.artifact_id
        bom_version = self.config.bom.version or default_bom_version()
        bom_path = writer.write_bom(
            analysis.components.values(), artifact_id=bom_artifact_id, version=bom_version
        )
        return GenerateOutcome(
            analysis=analysis,
            pom_paths=pom_paths,
            bom_path=bom_path,
            bom_artifact_id=bom_artifact_id,
            bom_version=bom_version,
        )

    def publish(self, outcome: GenerateOutcome, *, deploy: bool = False) -> None:
        """Install the generated artifacts locally and, with ``deploy``, also deploy them."""
        group_id = self.config.require_group_id()
        requests = [
            component_request(group_id, outcome.analysis.components[key])
            for key in sorted(outcome.analysis.components)
        ]
        requests.append(
            bom_request(group_id, outcome.bom_artifact_id, outcome.bom_version, outcome.bom_path)
        )
        installer = self._resolve_installer()
        maven = self.config.maven
        if deploy:
            installer.check_repository(maven.deploy_repository_id, maven.deploy_repository_url)
        installer.install(requests)
        if deploy:
            installer.deploy(
                requests,
                repository_id=maven.deploy_repository_id,
                repository_url=maven.deploy_repository_url,
                retries=maven.retry_count,
            )

    def _resolve_installer(self) -> MavenInstaller:
        if self._installer is None:
            self._installer = MavenInstaller(
                executable=self.config.maven.executable, cwd=self.config.root
            )
        return self._installer


__all__ = ["AnalysisOutcome", "GenerateOutcome", "Mavenizer", "MavenizerError"]
