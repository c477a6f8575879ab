"""Resolve symbolic build identifiers to concrete build numbers."""

from __future__ import annotations

from jenkins_builds.errors import NoBuildAvailable, NoStableBuildAvailable
from jenkins_builds.models import BuildInfo, BuildRef, Symbolic
from jenkins_builds.repository import JobRepository


def resolve_build(repository: JobRepository, name: str, ref: BuildRef) -> int:
    """Return the build number *ref* designates for job *name*.

    Literal numbers are returned unchanged without contacting the server.

    Raises:
        NoBuildAvailable: ``Symbolic.LATEST`` on a job that never built.
        NoStableBuildAvailable: ``Symbolic.LATEST_STABLE`` on a job with no
            stable build.
        ValueError: *ref* is a non-positive number.
    """
    if isinstance(ref, Symbolic):
        job = repository.fetch_job(name)
        if ref is Symbolic.LATEST:
            if job.last_build == 0:
                raise NoBuildAvailable(name)
            return job.last_build
        if job.last_stable_build == 0:
            raise NoStableBuildAvailable(name)
        return job.last_stable_build

    if isinstance(ref, bool) or not isinstance(ref, int) or ref <= 0:
        raise ValueError(f"Build number must be a positive integer, got {ref!r}.")
    return ref


def get_build(repository: JobRepository, name: str, ref: BuildRef) -> BuildInfo:
    """Resolve *ref* and fetch the corresponding build."""
    return repository.fetch_build(name, resolve_build(repository, name, ref))
