"""Retrieve artifacts of successful builds."""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from jenkins_builds.errors import (
    ArtifactDownloadError,
    ArtifactNotFound,
    BuildNotSuccessful,
    TransportError,
)
from jenkins_builds.models import BuildInfo, BuildRef
from jenkins_builds.repository import JobRepository
from jenkins_builds.resolve import get_build, resolve_build

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _successful_build(
    repository: JobRepository, name: str, ref: BuildRef
) -> tuple[int, BuildInfo]:
    number = resolve_build(repository, name, ref)
    build = repository.fetch_build(name, number)
    if not build.succeeded:
        raise BuildNotSuccessful(build)
    return number, build


def _target_path(output_dir: Path, display_path: str) -> Path:
    relative = Path(display_path)
    if relative.is_absolute() or ".." in relative.parts:
        raise ValueError(f"artifact path {display_path!r} escapes the output directory")
    return output_dir / relative


def list_artifacts(repository: JobRepository, name: str, ref: BuildRef) -> dict[str, str]:
    """Return the display path -> relative path mapping of a build's artifacts."""
    return dict(get_build(repository, name, ref).artifacts)


def download_artifacts(
    repository: JobRepository,
    name: str,
    ref: BuildRef,
    output_dir: str | Path,
) -> list[Path]:
    """Download every artifact of a successful build below *output_dir*.

    Each artifact is written to ``output_dir / display_path``, creating
    parent directories as needed.

    Returns:
        The paths written, in download order.

    Raises:
        BuildNotSuccessful: The build's result is not ``SUCCESS``. Nothing
            is written in that case.
        ArtifactDownloadError: A download or a filesystem operation failed.
            ``written`` holds the files completed so far; nothing is rolled
            back.
    """
    output_dir = Path(output_dir)
    logger.info("Fetching %s to %s", name, output_dir)
    number, build = _successful_build(repository, name, ref)
    logger.info(
        "Fetching artifacts for build #%d (%d total)", number, len(build.artifacts)
    )

    written: list[Path] = []
    for display_path, relative_path in build.artifacts.items():
        try:
            target = _target_path(output_dir, display_path)
            with repository.open_artifact(name, number, relative_path) as response:
                target.parent.mkdir(parents=True, exist_ok=True)
                with target.open("wb") as fh:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        fh.write(chunk)
        except (OSError, ValueError, TransportError, requests.RequestException) as exc:
            raise ArtifactDownloadError(
                f"Failed to fetch artifact '{display_path}' of build #{number}: {exc}",
                written,
            ) from exc
        logger.info("-> %s", target)
        written.append(target)
    return written


def open_artifact_stream(
    repository: JobRepository, name: str, ref: BuildRef, artifact: str
) -> requests.Response:
    """Open one artifact of a successful build, keyed by its display path.

    The caller owns the returned streamed response and must close it.

    Raises:
        BuildNotSuccessful: The build's result is not ``SUCCESS``.
        ArtifactNotFound: The build has no artifact with that display path.
    """
    number, build = _successful_build(repository, name, ref)
    relative_path = build.artifacts.get(artifact)
    if relative_path is None:
        raise ArtifactNotFound(name, number, artifact)
    return repository.open_artifact(name, number, relative_path)
