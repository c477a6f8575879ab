"""Exceptions raised by jenkins_builds."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jenkins_builds.models import BuildInfo


class JenkinsBuildsError(Exception):
    """Base class for all errors raised by this package."""


class TransportError(JenkinsBuildsError):
    """A request failed or returned a non-2xx status."""

    def __init__(self, url: str, status_code: int | None = None, detail: str = "") -> None:
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            message = f"Bad status: {status_code} from {url}"
        else:
            message = f"Request to {url} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class NotFoundError(TransportError):
    """The requested job, build or artifact does not exist (yet)."""

    def __init__(self, url: str) -> None:
        super().__init__(url, 404)


class DecodeError(JenkinsBuildsError):
    """A response body could not be decoded into a JSON object."""

    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        message = f"Could not decode response from {url}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ResolutionError(JenkinsBuildsError):
    """A symbolic build identifier could not be resolved."""

    reason = "no build available"

    def __init__(self, job_name: str) -> None:
        self.job_name = job_name
        super().__init__(f"{self.reason} for job '{job_name}'")


class NoBuildAvailable(ResolutionError):
    """The job has never been built."""

    reason = "no build available"


class NoStableBuildAvailable(ResolutionError):
    """The job has no successful build to resolve "latest-stable" to."""

    reason = "no stable build available"


class BuildNotSuccessful(JenkinsBuildsError):
    """The requested build did not finish with ``SUCCESS``."""

    def __init__(self, build: BuildInfo) -> None:
        self.build = build
        super().__init__(
            f"Build #{build.id} of '{build.name}' did not succeed (result: {build.result or 'UNKNOWN'})"
        )


class WaitAborted(JenkinsBuildsError):
    """The remote state stopped matching the build being waited for."""

    def __init__(self, job_name: str, number: int) -> None:
        self.job_name = job_name
        self.number = number
        super().__init__(
            f"Inconsistent state for '{job_name}': could not wait for build #{number} to complete"
        )


class WaitTimeout(JenkinsBuildsError):
    """The build did not complete before the wait deadline."""

    def __init__(self, job_name: str, number: int, timeout: float) -> None:
        self.job_name = job_name
        self.number = number
        self.timeout = timeout
        super().__init__(f"Build #{number} of '{job_name}' did not complete within {timeout:g}s")


class StableBuildUnavailable(JenkinsBuildsError):
    """The last stable build could not be fetched before waiting."""

    def __init__(self, job_name: str) -> None:
        self.job_name = job_name
        super().__init__(f"Couldn't fetch last stable build info for '{job_name}'")


class ArtifactNotFound(JenkinsBuildsError):
    """The build has no artifact under the requested display path."""

    def __init__(self, job_name: str, number: int, artifact: str) -> None:
        self.job_name = job_name
        self.number = number
        self.artifact = artifact
        super().__init__(f"Build #{number} of '{job_name}' has no artifact '{artifact}'")


class ArtifactDownloadError(JenkinsBuildsError):
    """Downloading artifacts stopped part way through.

    ``written`` lists the files completed before the failure. Files are not
    cleaned up.
    """

    def __init__(self, message: str, written: list[Path]) -> None:
        self.written = list(written)
        super().__init__(message)
