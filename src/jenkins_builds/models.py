"""Structured records decoded from the Jenkins JSON API.

Jenkins documents are loosely typed. Decoding is lenient on purpose: a field
that is missing or has an unexpected type becomes its zero value (``""``,
``0``, ``0.0`` or ``False``) instead of aborting, so a partially malformed
document still yields a best-effort record.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

from jenkins_builds.errors import DecodeError

# Result reported while a build has no terminal result yet.
BUILDING = "BUILDING"
SUCCESS = "SUCCESS"


class Symbolic(Enum):
    """Symbolic build identifiers resolved against the job's state."""

    LATEST = "latest"
    LATEST_STABLE = "latest-stable"


# A positive literal build number or a symbolic identifier.
BuildRef = Union[int, Symbolic]

_SYMBOLIC_ALIASES = {
    "latest": Symbolic.LATEST,
    "last": Symbolic.LATEST,
    "latest-stable": Symbolic.LATEST_STABLE,
    "latest_stable": Symbolic.LATEST_STABLE,
    "stable": Symbolic.LATEST_STABLE,
    "laststable": Symbolic.LATEST_STABLE,
}


def parse_build_ref(text: str | int) -> BuildRef:
    """Parse ``"latest"``, ``"latest-stable"`` or a build number.

    Raises:
        ValueError: If *text* is neither a known alias nor a positive integer.
    """
    if isinstance(text, int) and not isinstance(text, bool):
        number = text
    else:
        value = str(text).strip()
        symbolic = _SYMBOLIC_ALIASES.get(value.lower())
        if symbolic is not None:
            return symbolic
        if not value.isdigit():
            raise ValueError(
                f"Invalid build identifier {text!r}: expected a build number, "
                "'latest' or 'latest-stable'."
            )
        number = int(value)
    if number <= 0:
        raise ValueError(f"Build number must be positive, got {number}.")
    return number


# ---------------------------------------------------------------------------
# Lenient field accessors
# ---------------------------------------------------------------------------
def _as_object(doc: Any, source: str) -> Mapping[str, Any]:
    if not isinstance(doc, Mapping):
        raise DecodeError(source, f"expected a JSON object, got {type(doc).__name__}")
    return doc


def _str(doc: Mapping[str, Any], key: str) -> str:
    value = doc.get(key)
    return value if isinstance(value, str) else ""


def _bool(doc: Mapping[str, Any], key: str) -> bool:
    value = doc.get(key)
    return value if isinstance(value, bool) else False


def _float(doc: Mapping[str, Any], key: str) -> float:
    value = doc.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        return 0.0
    # 1e400 parses as inf; NaN is accepted by json.loads.
    return number if math.isfinite(number) else 0.0


def _int(doc: Mapping[str, Any], key: str) -> int:
    return int(_float(doc, key))


def _build_ref(doc: Mapping[str, Any], key: str) -> tuple[int, str]:
    """Decode a ``{"number": ..., "url": ...}`` build reference."""
    ref = doc.get(key)
    if not isinstance(ref, Mapping):
        return 0, ""
    return _int(ref, "number"), _str(ref, "url")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class JobInfo:
    """Point-in-time snapshot of a job's top-level state."""

    name: str = ""
    description: str = ""
    url: str = ""
    buildable: bool = False
    in_queue: bool = False
    last_build: int = 0
    last_build_url: str = ""
    last_stable_build: int = 0
    last_stable_build_url: str = ""

    @classmethod
    def from_json(cls, doc: Any, source: str = "<job document>") -> JobInfo:
        doc = _as_object(doc, source)
        last_build, last_build_url = _build_ref(doc, "lastBuild")
        last_stable, last_stable_url = _build_ref(doc, "lastStableBuild")
        return cls(
            name=_str(doc, "name"),
            description=_str(doc, "description"),
            url=_str(doc, "url"),
            buildable=_bool(doc, "buildable"),
            in_queue=_bool(doc, "inQueue"),
            last_build=last_build,
            last_build_url=last_build_url,
            last_stable_build=last_stable,
            last_stable_build_url=last_stable_url,
        )

    def log_summary(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        logger.log(level, "Job Info For %s", self.name)
        logger.log(level, "  description        : %s", self.description)
        logger.log(level, "  url                : %s", self.url)
        logger.log(level, "  buildable          : %s", self.buildable)
        logger.log(level, "  inQueue            : %s", self.in_queue)
        logger.log(level, "  lastBuild          : %s", self.last_build)
        logger.log(level, "  lastBuildUrl       : %s", self.last_build_url)
        logger.log(level, "  lastStableBuild    : %s", self.last_stable_build)
        logger.log(level, "  lastStableBuildUrl : %s", self.last_stable_build_url)


@dataclass(frozen=True)
class BuildInfo:
    """Point-in-time snapshot of a single build.

    ``result`` is ``BUILDING`` while the server reports no result, ``""`` when
    the server sent something that is not a string, and otherwise the
    server's terminal value (``SUCCESS``, ``FAILURE``, ``ABORTED``...).
    ``artifacts`` maps display path to the path relative to the build's
    ``artifact/`` endpoint.
    """

    name: str = ""
    id: int = 0
    building: bool = False
    result: str = BUILDING
    duration: float = 0.0
    estimated_duration: float = 0.0
    timestamp: float = 0.0
    url: str = ""
    artifacts: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.result == SUCCESS

    @classmethod
    def from_json(cls, doc: Any, source: str = "<build document>") -> BuildInfo:
        doc = _as_object(doc, source)
        artifacts: dict[str, str] = {}
        raw_artifacts = doc.get("artifacts")
        if isinstance(raw_artifacts, list):
            for artifact in raw_artifacts:
                if not isinstance(artifact, Mapping):
                    continue
                display_path = _str(artifact, "displayPath")
                relative_path = _str(artifact, "relativePath")
                if display_path and relative_path:
                    artifacts[display_path] = relative_path

        raw_result = doc.get("result")
        if raw_result is None:
            result = BUILDING
        else:
            result = raw_result if isinstance(raw_result, str) else ""

        return cls(
            name=_str(doc, "fullDisplayName"),
            id=_int(doc, "number"),
            building=_bool(doc, "building"),
            result=result,
            duration=_float(doc, "duration"),
            estimated_duration=_float(doc, "estimatedDuration"),
            timestamp=_float(doc, "timestamp"),
            url=_str(doc, "url"),
            artifacts=artifacts,
        )

    def log_summary(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        logger.log(level, "Build Info For %s", self.name)
        logger.log(level, "  id                : %s", self.id)
        logger.log(level, "  artifacts         : %s", self.artifacts)
        logger.log(level, "  building          : %s", self.building)
        logger.log(level, "  duration          : %g", self.duration)
        logger.log(level, "  estimatedDuration : %g", self.estimated_duration)
        logger.log(level, "  result            : %s", self.result)
        logger.log(level, "  timestamp         : %.0f", self.timestamp)
        logger.log(level, "  url               : %s", self.url)
