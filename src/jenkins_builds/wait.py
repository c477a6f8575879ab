"""Wait for a triggered build to complete.

Jenkins does not return the number of a build when it is triggered, so the
caller predicts it (``last_build + 1``) and this module polls until a build
with that number shows up and finishes::

    NOT_YET_VISIBLE -> QUEUED -> BUILDING -> COMPLETED

While the build cannot be fetched, the job itself is inspected. If the job is
not in the queue, or its numbering no longer leads to the predicted build,
the observation is inconsistent. One such observation is tolerated since it
can be a race right after triggering; a second consecutive one aborts the
wait with :class:`~jenkins_builds.errors.WaitAborted`.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from jenkins_builds.errors import (
    JenkinsBuildsError,
    StableBuildUnavailable,
    TransportError,
    WaitAborted,
    WaitTimeout,
)
from jenkins_builds.models import BuildInfo
from jenkins_builds.repository import JobRepository

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


class WaitState(str, Enum):
    NOT_YET_VISIBLE = "NOT_YET_VISIBLE"
    QUEUED = "QUEUED"
    BUILDING = "BUILDING"
    COMPLETED = "COMPLETED"


def _stable_build_hint(
    repository: JobRepository, name: str, last_stable: int | None
) -> BuildInfo:
    if last_stable is None:
        last_stable = repository.fetch_job(name).last_stable_build
    if last_stable <= 0:
        raise StableBuildUnavailable(name)
    try:
        return repository.fetch_build(name, last_stable)
    except JenkinsBuildsError as exc:
        raise StableBuildUnavailable(name) from exc


def wait_for_build(
    repository: JobRepository,
    name: str,
    number: int,
    *,
    last_stable: int | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
    on_transition: Callable[[WaitState], None] | None = None,
) -> BuildInfo:
    """Block until build *number* of job *name* has completed.

    Args:
        repository: Where to read job and build state from.
        name: Job name.
        number: Predicted number of the build to wait for.
        last_stable: Number of the job's last stable build, used to report an
            expected duration. Fetched from the job when omitted.
        poll_interval: Seconds to sleep between polls.
        timeout: Give up after this many seconds. ``None`` waits forever.
        on_transition: Called with each new state as it is entered.

    Returns:
        The completed build, exactly as fetched.

    Raises:
        StableBuildUnavailable: The last stable build could not be fetched.
        WaitAborted: Two consecutive polls saw state inconsistent with
            *number* being the tracked build.
        WaitTimeout: *timeout* elapsed first.
        TransportError: The job itself could not be fetched while polling.
        DecodeError: A response could not be decoded.
    """
    stable = _stable_build_hint(repository, name, last_stable)
    logger.info(
        "Waiting for %s #%d to complete. Last stable took %g milliseconds.",
        name,
        number,
        stable.duration,
    )

    deadline = None if timeout is None else time.monotonic() + timeout
    state = WaitState.NOT_YET_VISIBLE
    inconsistent = False

    def enter(new_state: WaitState) -> None:
        nonlocal state
        if new_state is state:
            return
        state = new_state
        if on_transition is not None:
            on_transition(new_state)

    while True:
        try:
            build = repository.fetch_build(name, number)
        except TransportError:
            job = repository.fetch_job(name)
            if not job.in_queue or job.last_build + 1 != number:
                if inconsistent:
                    raise WaitAborted(name, number)
                inconsistent = True
                logger.warning(
                    "Unexpected state for %s (inQueue=%s, lastBuild=%d) while waiting for #%d; "
                    "polling once more.",
                    name,
                    job.in_queue,
                    job.last_build,
                    number,
                )
            else:
                inconsistent = False
                if state is not WaitState.QUEUED:
                    logger.info("%s #%d is in queue.", name, number)
                enter(WaitState.QUEUED)
        else:
            inconsistent = False
            if not build.building:
                enter(WaitState.COMPLETED)
                build.log_summary(logger)
                return build
            if state is not WaitState.BUILDING:
                logger.info("%s #%d is building.", name, number)
            enter(WaitState.BUILDING)

        if deadline is not None and time.monotonic() >= deadline:
            raise WaitTimeout(name, number, timeout)
        time.sleep(poll_interval)
