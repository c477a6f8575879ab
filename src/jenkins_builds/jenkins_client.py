"""Jenkins client wrapper with environment-based configuration."""

from __future__ import annotations

import os

import jenkins

from jenkins_builds.repository import JobRepository

DEFAULT_SERVER = "alfred-jenkins.sv2:8080"
DEFAULT_TIMEOUT = 30.0


def server_url(address: str) -> str:
    """Normalise a ``host:port`` address or URL into a base URL.

    Raises:
        ValueError: If the address is empty.
    """
    address = address.strip()
    if not address:
        raise ValueError("Jenkins server address must not be empty.")
    if "://" not in address:
        address = "http://" + address
    return address.rstrip("/")


def get_client(server: str | None = None) -> jenkins.Jenkins:
    """Create a Jenkins client.

    Environment variables:
        JENKINS_SERVER: Jenkins server address, ``host:port`` or URL
            (defaults to ``DEFAULT_SERVER``). Ignored if *server* is given.
        JENKINS_USERNAME: Jenkins username (optional)
        JENKINS_API_TOKEN: Jenkins API token (optional)
        JENKINS_TIMEOUT: per-request timeout in seconds (optional)

    Returns:
        A configured Jenkins client instance.

    Raises:
        ValueError: If the server address is empty or the timeout is not a
            number.
    """
    url = server_url(server or os.environ.get("JENKINS_SERVER") or DEFAULT_SERVER)
    username = os.environ.get("JENKINS_USERNAME") or None
    token = os.environ.get("JENKINS_API_TOKEN") or None
    timeout = float(os.environ.get("JENKINS_TIMEOUT") or DEFAULT_TIMEOUT)
    return jenkins.Jenkins(url, username=username, password=token, timeout=timeout)


def get_repository(server: str | None = None) -> JobRepository:
    """Return a :class:`JobRepository` bound to the configured server."""
    url = server_url(server or os.environ.get("JENKINS_SERVER") or DEFAULT_SERVER)
    return JobRepository(url, get_client(url))
