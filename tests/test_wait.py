"""Tests for the build wait loop — the remote side is scripted."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from helpers import build_info, job_info

from jenkins_builds.errors import (
    DecodeError,
    NotFoundError,
    StableBuildUnavailable,
    TransportError,
    WaitAborted,
    WaitTimeout,
)
from jenkins_builds.wait import WaitState, wait_for_build

NOT_FOUND = NotFoundError("http://j/job/demo/6/api/json")


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("jenkins_builds.wait.time.sleep") as patched:
        yield patched


def _script(mock_repo, builds, jobs=()):
    """Feed fetch_build/fetch_job with scripted results (exceptions raise)."""
    mock_repo.fetch_build.side_effect = [build_info(id=5, duration=42000.0), *builds]
    mock_repo.fetch_job.side_effect = list(jobs)


class TestWaitForBuild:
    def test_full_progression(self, mock_repo, no_sleep):
        finished = build_info(name="demo #6", id=6, building=False, result="SUCCESS")
        _script(
            mock_repo,
            builds=[
                NOT_FOUND,
                build_info(id=6, building=True, result="BUILDING"),
                build_info(id=6, building=True, result="BUILDING"),
                finished,
            ],
            jobs=[job_info(in_queue=True, last_build=5)],
        )
        transitions = []

        result = wait_for_build(
            mock_repo, "demo", 6, last_stable=5, on_transition=transitions.append
        )

        assert result is finished
        assert transitions == [WaitState.QUEUED, WaitState.BUILDING, WaitState.COMPLETED]
        assert no_sleep.call_count == 3
        no_sleep.assert_called_with(1.0)

    def test_repeated_states_reported_once(self, mock_repo):
        _script(
            mock_repo,
            builds=[NOT_FOUND, NOT_FOUND, NOT_FOUND, build_info(id=6)],
            jobs=[job_info(in_queue=True, last_build=5)] * 3,
        )
        transitions = []

        wait_for_build(mock_repo, "demo", 6, last_stable=5, on_transition=transitions.append)

        assert transitions == [WaitState.QUEUED, WaitState.COMPLETED]

    def test_already_completed(self, mock_repo, no_sleep):
        done = build_info(id=6)
        _script(mock_repo, builds=[done])

        assert wait_for_build(mock_repo, "demo", 6, last_stable=5) is done
        no_sleep.assert_not_called()

    def test_failed_build_is_still_returned(self, mock_repo):
        failed = build_info(id=6, result="FAILURE")
        _script(mock_repo, builds=[failed])

        assert wait_for_build(mock_repo, "demo", 6, last_stable=5).result == "FAILURE"

    def test_aborts_on_second_consecutive_inconsistency(self, mock_repo):
        _script(
            mock_repo,
            builds=[NOT_FOUND, NOT_FOUND, build_info(id=6)],
            jobs=[job_info(in_queue=False, last_build=5)] * 2,
        )

        with pytest.raises(WaitAborted) as excinfo:
            wait_for_build(mock_repo, "demo", 6, last_stable=5)

        assert excinfo.value.number == 6
        assert mock_repo.fetch_job.call_count == 2

    def test_single_inconsistency_is_tolerated(self, mock_repo):
        done = build_info(id=6)
        _script(
            mock_repo,
            builds=[NOT_FOUND, done],
            jobs=[job_info(in_queue=False, last_build=5)],
        )

        assert wait_for_build(mock_repo, "demo", 6, last_stable=5) is done

    def test_numbering_moved_underneath_is_inconsistent(self, mock_repo):
        """Someone else's build took the predicted number."""
        _script(
            mock_repo,
            builds=[NOT_FOUND, NOT_FOUND],
            jobs=[job_info(in_queue=True, last_build=6)] * 2,
        )

        with pytest.raises(WaitAborted):
            wait_for_build(mock_repo, "demo", 6, last_stable=5)

    def test_consistent_poll_resets_inconsistency(self, mock_repo):
        done = build_info(id=6)
        _script(
            mock_repo,
            builds=[NOT_FOUND, NOT_FOUND, NOT_FOUND, done],
            jobs=[
                job_info(in_queue=False, last_build=5),
                job_info(in_queue=True, last_build=5),
                job_info(in_queue=False, last_build=5),
            ],
        )

        assert wait_for_build(mock_repo, "demo", 6, last_stable=5) is done

    def test_transport_error_on_build_falls_back_to_job(self, mock_repo):
        done = build_info(id=6)
        _script(
            mock_repo,
            builds=[TransportError("http://j/job/demo/6/api/json", 500), done],
            jobs=[job_info(in_queue=True, last_build=5)],
        )

        assert wait_for_build(mock_repo, "demo", 6, last_stable=5) is done

    def test_job_fetch_failure_propagates(self, mock_repo):
        _script(
            mock_repo,
            builds=[NOT_FOUND],
            jobs=[TransportError("http://j/job/demo/api/json", 503)],
        )

        with pytest.raises(TransportError):
            wait_for_build(mock_repo, "demo", 6, last_stable=5)

    def test_decode_error_is_fatal(self, mock_repo):
        _script(mock_repo, builds=[DecodeError("http://j/job/demo/6/api/json")])

        with pytest.raises(DecodeError):
            wait_for_build(mock_repo, "demo", 6, last_stable=5)

        mock_repo.fetch_job.assert_not_called()

    def test_custom_poll_interval(self, mock_repo, no_sleep):
        _script(
            mock_repo,
            builds=[build_info(id=6, building=True), build_info(id=6)],
        )

        wait_for_build(mock_repo, "demo", 6, last_stable=5, poll_interval=0.25)

        no_sleep.assert_called_once_with(0.25)

    def test_timeout(self, mock_repo):
        mock_repo.fetch_build.side_effect = [
            build_info(id=5),
            build_info(id=6, building=True),
            build_info(id=6, building=True),
        ]

        with patch("jenkins_builds.wait.time") as fake_time:
            fake_time.monotonic.side_effect = [100.0, 105.0, 111.0]
            with pytest.raises(WaitTimeout) as excinfo:
                wait_for_build(mock_repo, "demo", 6, last_stable=5, timeout=10)

        assert excinfo.value.timeout == 10
        fake_time.sleep.assert_called_once_with(1.0)


class TestStableBuildHint:
    def test_fetches_job_when_last_stable_unknown(self, mock_repo):
        mock_repo.fetch_job.side_effect = [job_info(last_stable_build=4)]
        mock_repo.fetch_build.side_effect = [build_info(id=4), build_info(id=6)]

        wait_for_build(mock_repo, "demo", 6)

        assert mock_repo.fetch_build.call_args_list[0].args == ("demo", 4)

    def test_stable_build_fetch_failure(self, mock_repo):
        mock_repo.fetch_build.side_effect = NotFoundError("http://j/job/demo/5/api/json")

        with pytest.raises(StableBuildUnavailable) as excinfo:
            wait_for_build(mock_repo, "demo", 6, last_stable=5)

        assert isinstance(excinfo.value.__cause__, NotFoundError)

    def test_job_without_stable_build(self, mock_repo):
        with pytest.raises(StableBuildUnavailable):
            wait_for_build(mock_repo, "demo", 1, last_stable=0)

        mock_repo.fetch_build.assert_not_called()
