"""Jenkins Builds MCP Server — trigger builds and fetch artifacts via MCP tools."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
from typing import Any

from fastmcp import FastMCP

from jenkins_builds.artifacts import download_artifacts, list_artifacts
from jenkins_builds.errors import ArtifactDownloadError, JenkinsBuildsError
from jenkins_builds.jenkins_client import get_repository
from jenkins_builds.models import BuildInfo, parse_build_ref
from jenkins_builds.resolve import get_build
from jenkins_builds.trigger import run_build

mcp = FastMCP("Jenkins Builds")


def _format_error(e: Exception) -> dict[str, Any]:
    """Format an exception into a consistent error response."""
    response: dict[str, Any] = {"error": True, "message": str(e)}
    if isinstance(e, ArtifactDownloadError):
        response["written"] = [str(path) for path in e.written]
    return response


def _build_response(job_name: str, build: BuildInfo) -> dict[str, Any]:
    return {
        "success": True,
        "job_name": job_name,
        "build_number": build.id,
        "display_name": build.name,
        "result": build.result,  # SUCCESS, FAILURE, ABORTED, BUILDING...
        "building": build.building,
        "duration_ms": build.duration,
        "estimated_duration_ms": build.estimated_duration,
        "timestamp_ms": build.timestamp,
        "url": build.url,
        "artifacts": dict(build.artifacts),
    }


# ---------------------------------------------------------------------------
# Tool 1: get_job_info
# ---------------------------------------------------------------------------
@mcp.tool
def get_job_info(job_name: str) -> dict[str, Any]:
    """Get the current state of a Jenkins job.

    Args:
        job_name: Name of the Jenkins job.

    Returns:
        A dict with the job's description, whether it is buildable or in the
        queue, and its last and last stable build numbers (0 when none).
    """
    try:
        repository = get_repository()
        job = repository.fetch_job(job_name)
        return {"success": True, "job_name": job_name, **dataclasses.asdict(job)}
    except JenkinsBuildsError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 2: get_build_info
# ---------------------------------------------------------------------------
@mcp.tool
def get_build_info(job_name: str, build: str = "latest") -> dict[str, Any]:
    """Get the status of one build of a Jenkins job.

    Args:
        job_name: Name of the Jenkins job.
        build: Build number, "latest" or "latest-stable".

    Returns:
        A dict with build number, result, whether it is still building,
        durations, timestamp and artifacts.
    """
    try:
        repository = get_repository()
        info = get_build(repository, job_name, parse_build_ref(build))
        return _build_response(job_name, info)
    except JenkinsBuildsError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 3: trigger_build
# ---------------------------------------------------------------------------
@mcp.tool
async def trigger_build(
    job_name: str,
    parameters: dict[str, Any] | None = None,
    wait: bool = False,
    timeout_seconds: float | None = None,
) -> dict[str, Any]:
    """Trigger a Jenkins build unless one is already queued.

    Args:
        job_name: Name of the Jenkins job.
        parameters: Optional dict of build parameters (key-value pairs).
        wait: Block until the build completes and return its status.
        timeout_seconds: Give up waiting after this many seconds.

    Returns:
        Without wait, the predicted build number and whether a new build was
        requested. With wait, the completed build's status.
    """
    try:
        repository = get_repository()
        # The wait polls with a blocking sleep; keep it off the event loop.
        outcome = await asyncio.to_thread(
            run_build, repository, job_name, parameters, wait=wait, timeout=timeout_seconds
        )
        if isinstance(outcome, BuildInfo):
            return _build_response(job_name, outcome)
        if outcome.submitted:
            message = f"Build #{outcome.number} of '{job_name}' has been scheduled."
        else:
            message = f"Job '{job_name}' is already in queue; tracking build #{outcome.number}."
        return {
            "success": True,
            "job_name": job_name,
            "build_number": outcome.number,
            "submitted": outcome.submitted,
            "message": message,
        }
    except JenkinsBuildsError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 4: list_build_artifacts
# ---------------------------------------------------------------------------
@mcp.tool
def list_build_artifacts(job_name: str, build: str = "latest-stable") -> dict[str, Any]:
    """List the artifacts of a Jenkins build.

    Args:
        job_name: Name of the Jenkins job.
        build: Build number, "latest" or "latest-stable".

    Returns:
        A dict mapping each artifact's display path to its path on the server.
    """
    try:
        repository = get_repository()
        artifacts = list_artifacts(repository, job_name, parse_build_ref(build))
        return {
            "success": True,
            "job_name": job_name,
            "artifact_count": len(artifacts),
            "artifacts": artifacts,
        }
    except JenkinsBuildsError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 5: download_build_artifacts
# ---------------------------------------------------------------------------
@mcp.tool
async def download_build_artifacts(
    job_name: str, output_dir: str, build: str = "latest-stable"
) -> dict[str, Any]:
    """Download all artifacts of a successful Jenkins build to a directory.

    Args:
        job_name: Name of the Jenkins job.
        output_dir: Local directory to write the artifacts below.
        build: Build number, "latest" or "latest-stable".

    Returns:
        A dict listing the files written.
    """
    try:
        repository = get_repository()
        written = await asyncio.to_thread(
            download_artifacts, repository, job_name, parse_build_ref(build), output_dir
        )
        return {
            "success": True,
            "job_name": job_name,
            "file_count": len(written),
            "files": [str(path) for path in written],
        }
    except JenkinsBuildsError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main() -> None:
    logging.basicConfig(
        level=os.environ.get("JENKINS_BUILDS_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
