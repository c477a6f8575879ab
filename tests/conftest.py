"""Shared fixtures — all Jenkins calls are mocked."""

from __future__ import annotations

import io
import json
from typing import Any
from unittest.mock import MagicMock

import jenkins
import pytest
import requests

from jenkins_builds.repository import JobRepository

SERVER = "http://jenkins.test:8080"


@pytest.fixture
def mock_client():
    """Return a MagicMock standing in for jenkins.Jenkins."""
    return MagicMock(spec=jenkins.Jenkins)


@pytest.fixture
def repository(mock_client):
    """A real JobRepository talking to the mocked client."""
    return JobRepository(SERVER, mock_client)


@pytest.fixture
def mock_repo():
    """A MagicMock standing in for JobRepository, for the core algorithms."""
    return MagicMock(spec=JobRepository)


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects."""

    def _make(
        *,
        status: int = 200,
        json_body: Any = None,
        text: str | None = None,
        stream: bytes | None = None,
        url: str = SERVER,
    ) -> requests.Response:
        response = requests.Response()
        response.status_code = status
        response.url = url
        if stream is not None:
            response.raw = io.BytesIO(stream)
        elif text is not None:
            response._content = text.encode("utf-8")
        else:
            response._content = json.dumps(json_body).encode("utf-8")
        if stream is None:
            response._content_consumed = True
        return response

    return _make
