"""Install or deploy generated artifacts through the Maven command line."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .logging import get_logger
from .models import ComponentRecord

MAX_ATTEMPTS = 10


class InstallationError(RuntimeError):
    """Raised when Maven fails to install or deploy an artifact."""


@dataclass(frozen=True)
class ArtifactRequest:
    """One ``install-file``/``deploy-file`` invocation."""

    group_id: str
    artifact_id: str
    version: str
    file: Path
    packaging: str = "jar"
    pom_file: Optional[Path] = None
    sources: Optional[Path] = None

    @property
    def coordinates(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    def properties(self) -> List[str]:
        args = [f"-Dfile={self.file}"]
        if self.pom_file is not None and self.pom_file != self.file:
            args.append(f"-DpomFile={self.pom_file}")
        else:
            args.extend(
                [
                    f"-DgroupId={self.group_id}",
                    f"-DartifactId={self.artifact_id}",
                    f"-Dversion={self.version}",
                ]
            )
        args.append(f"-Dpackaging={self.packaging}")
        if self.sources is not None:
            args.append(f"-Dsources={self.sources}")
        return args


def component_request(group_id: str, record: ComponentRecord) -> ArtifactRequest:
    if record.artifact_path is None:
        raise InstallationError(f"{record.identity} has no extracted jar")
    return ArtifactRequest(
        group_id=group_id,
        artifact_id=record.artifact_id,
        version=record.version,
        file=record.artifact_path,
        pom_file=record.pom_path,
        sources=record.sources_path,
    )


def bom_request(group_id: str, artifact_id: str, version: str, path: Path) -> ArtifactRequest:
    return ArtifactRequest(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        file=path,
        packaging="pom",
        pom_file=path,
    )


class MavenInstaller:
    """Runs ``mvn install:install-file`` and ``mvn deploy:deploy-file``."""

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        executable: str = "mvn",
        cwd: Path | None = None,
    ) -> None:
        self._runner = runner or self._default_runner
        self.executable = executable
        self.cwd = cwd or Path.cwd()
        self.logger = get_logger("installer")

    def install(self, requests: Iterable[ArtifactRequest]) -> None:
        """Install each artifact into the local repository; the first failure aborts."""
        for request in requests:
            self.logger.info("Installing %s", request.coordinates)
            try:
                self._run(self._command("install:install-file", request))
            except subprocess.CalledProcessError as exc:
                raise InstallationError(
                    f"Failed to install {request.coordinates}: {exc}"
                ) from exc

    def deploy(
        self,
        requests: Sequence[ArtifactRequest],
        *,
        repository_id: Optional[str],
        repository_url: Optional[str],
        retries: int = MAX_ATTEMPTS,
    ) -> None:
        """Deploy every artifact, retrying each and continuing past failures.

        The first failure is raised after all requests were attempted.
        """
        self.check_repository(repository_id, repository_url)
        attempts = max(1, min(MAX_ATTEMPTS, retries))
        extra = [f"-DrepositoryId={repository_id}", f"-Durl={repository_url}"]

        first_failure: Optional[subprocess.CalledProcessError] = None
        failed_request: Optional[ArtifactRequest] = None
        for request in requests:
            try:
                self._deploy_one(request, extra, attempts)
            except subprocess.CalledProcessError as exc:
                self.logger.error("Failed to deploy %s: %s", request.coordinates, exc)
                self.logger.info("Continuing with the rest of the deployment requests")
                if first_failure is None:
                    first_failure, failed_request = exc, request

        if first_failure is not None and failed_request is not None:
            raise InstallationError(
                f"First deployment failure was {failed_request.coordinates}: {first_failure}"
            ) from first_failure

    @staticmethod
    def check_repository(repository_id: Optional[str], repository_url: Optional[str]) -> None:
        if not repository_id:
            raise InstallationError("deploy_repository_id must be specified")
        if not repository_url:
            raise InstallationError("deploy_repository_url must be specified")

    def _deploy_one(self, request: ArtifactRequest, extra: List[str], attempts: int) -> None:
        command = self._command("deploy:deploy-file", request) + extra
        for attempt in range(1, attempts + 1):
            if attempt > 1:
                self.logger.info("Retrying deployment attempt %d of %d", attempt, attempts)
            try:
                self._run(command)
                return
            except subprocess.CalledProcessError as exc:
                if attempt == attempts:
                    raise
                self.logger.warning("Encountered issue during deployment: %s", exc)

    def _command(self, goal: str, request: ArtifactRequest) -> List[str]:
        return [self.executable, "-B", "-q", goal, *request.properties()]

    def _run(self, args: Sequence[str]) -> str:
        self.logger.debug("Running %s", " ".join(args))
        try:
            return self._runner(list(args), cwd=self.cwd)
        except FileNotFoundError as exc:
            raise InstallationError(f"Maven executable not found: {self.executable}") from exc

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = [
    "ArtifactRequest",
    "InstallationError",
    "MavenInstaller",
    "bom_request",
    "component_request",
]
