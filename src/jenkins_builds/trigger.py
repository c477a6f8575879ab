"""Trigger Jenkins builds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from jenkins_builds.models import BuildInfo, JobInfo
from jenkins_builds.repository import JobRepository
from jenkins_builds.wait import DEFAULT_POLL_INTERVAL, wait_for_build

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggeredBuild:
    """A build that was requested, or was already queued, for a job.

    ``number`` is a prediction: Jenkins numbers builds sequentially but does
    not report the new number when triggered. It is wrong if somebody else
    triggers the same job concurrently.
    """

    job_name: str
    number: int
    submitted: bool
    job: JobInfo


def trigger_build(
    repository: JobRepository,
    name: str,
    parameters: Mapping[str, Any] | None = None,
) -> TriggeredBuild:
    """Trigger a build of *name* unless one is already queued.

    At most one trigger request is sent. When the job is already in the
    queue, none is, and the queued build is tracked instead.
    """
    logger.info("Building %s", name)
    job = repository.fetch_job(name)
    job.log_summary(logger, logging.DEBUG)
    number = job.last_build + 1
    if job.in_queue:
        logger.info("Job %s already in queue.", name)
        return TriggeredBuild(job_name=name, number=number, submitted=False, job=job)

    repository.post_trigger(name, parameters)
    logger.info("Build #%d of %s scheduled.", number, name)
    return TriggeredBuild(job_name=name, number=number, submitted=True, job=job)


def run_build(
    repository: JobRepository,
    name: str,
    parameters: Mapping[str, Any] | None = None,
    *,
    wait: bool = False,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
) -> TriggeredBuild | BuildInfo:
    """Trigger a build and, if *wait* is set, block until it completes.

    Returns the :class:`TriggeredBuild` when not waiting, otherwise the
    completed :class:`~jenkins_builds.models.BuildInfo`.
    """
    triggered = trigger_build(repository, name, parameters)
    if not wait:
        return triggered
    return wait_for_build(
        repository,
        name,
        triggered.number,
        last_stable=triggered.job.last_stable_build,
        poll_interval=poll_interval,
        timeout=timeout,
    )
