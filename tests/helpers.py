"""Record builders used across the test modules."""

from __future__ import annotations

from typing import Any

from jenkins_builds.models import BuildInfo, JobInfo


def job_info(**overrides: Any) -> JobInfo:
    fields: dict[str, Any] = {
        "name": "demo",
        "buildable": True,
        "in_queue": False,
        "last_build": 5,
        "last_stable_build": 5,
    }
    fields.update(overrides)
    return JobInfo(**fields)


def build_info(**overrides: Any) -> BuildInfo:
    fields: dict[str, Any] = {
        "name": "demo #5",
        "id": 5,
        "building": False,
        "result": "SUCCESS",
        "duration": 1200.0,
    }
    fields.update(overrides)
    return BuildInfo(**fields)
