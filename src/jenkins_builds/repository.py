"""Remote access to Jenkins jobs, builds and artifacts.

All requests go through :meth:`jenkins.Jenkins.jenkins_request` so that
credentials, crumbs and the per-request timeout configured on the client
apply. Library and network exceptions are translated into
:class:`~jenkins_builds.errors.TransportError` and friends.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import quote, urlencode

import jenkins
import requests

from jenkins_builds.errors import DecodeError, NotFoundError, TransportError
from jenkins_builds.models import BuildInfo, JobInfo

logger = logging.getLogger(__name__)


def _status_code(exc: BaseException) -> int | None:
    """Find the HTTP status behind *exc*, following the exception chain.

    python-jenkins re-raises 401/403/500 responses as ``JenkinsException``
    from inside its ``HTTPError`` handler, so the original response is only
    reachable through ``__context__``.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        response = getattr(current, "response", None)
        if isinstance(current, requests.HTTPError) and response is not None:
            return response.status_code
        current = current.__cause__ or current.__context__
    return None


class JobRepository:
    """Fetches job and build documents from one Jenkins server."""

    def __init__(self, server: str, client: jenkins.Jenkins) -> None:
        self._server = server.rstrip("/")
        self._client = client

    @property
    def server(self) -> str:
        return self._server

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------
    def job_url(self, name: str) -> str:
        """URL of job *name*; ``team/app`` names job ``app`` in folder ``team``."""
        path = "/".join(f"job/{quote(part, safe='')}" for part in name.strip("/").split("/"))
        return f"{self._server}/{path}"

    def build_url(self, name: str, number: int) -> str:
        return f"{self.job_url(name)}/{number}"

    def trigger_url(self, name: str) -> str:
        query = urlencode({"token": f"{name}-token"})
        return f"{self.job_url(name)}/buildWithParameters?{query}"

    def artifact_url(self, name: str, number: int, relative_path: str) -> str:
        path = quote(relative_path.lstrip("/"), safe="/")
        return f"{self.build_url(name, number)}/artifact/{path}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, url: str, *, stream: bool = False, **kwargs: Any
    ) -> requests.Response:
        try:
            response = self._client.jenkins_request(
                requests.Request(method, url, **kwargs), stream=stream
            )
        except jenkins.NotFoundException as exc:
            raise NotFoundError(url) from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise TransportError(url, status) from exc
        except jenkins.JenkinsException as exc:
            raise TransportError(url, _status_code(exc), str(exc)) from exc
        except requests.RequestException as exc:
            raise TransportError(url, None, str(exc)) from exc

        if not 200 <= response.status_code < 300:
            response.close()
            raise TransportError(url, response.status_code)
        return response

    def _get_json(self, url: str) -> Any:
        response = self._request("GET", url)
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(url, str(exc)) from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch_job(self, name: str) -> JobInfo:
        """Fetch the current state of job *name*."""
        url = f"{self.job_url(name)}/api/json"
        return JobInfo.from_json(self._get_json(url), source=url)

    def fetch_build(self, name: str, number: int) -> BuildInfo:
        """Fetch build *number* of job *name*."""
        url = f"{self.build_url(name, number)}/api/json"
        return BuildInfo.from_json(self._get_json(url), source=url)

    def post_trigger(self, name: str, parameters: Mapping[str, Any] | None = None) -> None:
        """Ask Jenkins to schedule a build of *name* with form-encoded *parameters*."""
        url = self.trigger_url(name)
        logger.debug("POST %s %s", url, dict(parameters or {}))
        response = self._request("POST", url, data=dict(parameters or {}))
        response.close()

    def open_artifact(self, name: str, number: int, relative_path: str) -> requests.Response:
        """Open a streamed response for one artifact.

        The caller owns the response and must close it (it is also a context
        manager).
        """
        url = self.artifact_url(name, number, relative_path)
        logger.debug("GET %s", url)
        return self._request("GET", url, stream=True)
