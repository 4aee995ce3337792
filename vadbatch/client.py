"""
vadbatch.client - HTTP client for remote VAD endpoints.

Each job is a single JSON POST; only a 200 response counts as success. Every
worker thread gets its own requests.Session so connections are reused without
sharing a session across threads. There is no retry adapter:
a file gets exactly one attempt per run.
"""

from __future__ import annotations

import threading
import time
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict

from vadbatch.exceptions import EndpointError
from vadbatch.logging import logger

SUCCESS_STATUS = 200


class JobDescriptor(BaseModel):
    """One unit of remote work."""

    model_config = ConfigDict(frozen=True)

    input_file: str
    output_dir: str
    model: str | None = None

    def payload(self) -> dict[str, Any]:
        """JSON body sent to the endpoint; model is null when unset."""
        return self.model_dump()


def normalize_endpoint(address: str) -> str:
    """Prefix scheme-less addresses (host:port/path) with http://."""
    address = address.strip()
    if "://" not in address:
        return f"http://{address}"
    return address


class VadClient:
    """Posts job descriptors to VAD endpoints, one session per thread."""

    def __init__(self, timeout: float | None = 600.0) -> None:
        self.timeout = timeout
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
            logger.debug("Created HTTP session %s", hex(id(session)))
        return session

    def submit(self, endpoint: str, job: JobDescriptor) -> int:
        """Send a job to an endpoint.

        Args:
            endpoint: Endpoint address, with or without scheme
            job: Job descriptor to send

        Returns:
            The HTTP status code (always 200)

        Raises:
            EndpointError: On transport failure or any non-200 status
        """
        url = normalize_endpoint(endpoint)
        start = time.monotonic()
        try:
            resp = self._session().post(url, json=job.payload(), timeout=self.timeout)
        except requests.RequestException as e:
            raise EndpointError(endpoint, f"request failed: {e}") from e

        elapsed = time.monotonic() - start
        logger.debug(
            "POST %s for %s returned %s in %.2fs", url, job.input_file, resp.status_code, elapsed
        )
        if resp.status_code != SUCCESS_STATUS:
            raise EndpointError(
                endpoint,
                f"API returned status {resp.status_code}",
                status=resp.status_code,
            )
        return resp.status_code

    def close(self) -> None:
        """Close every session opened by this client."""
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()

    def __enter__(self) -> VadClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def check_endpoint(address: str, timeout: float = 5.0) -> dict[str, Any]:
    """Check whether an endpoint accepts connections.

    Any HTTP response counts as reachable; the status is reported as-is since
    VAD services commonly reject GET on their job route.

    Args:
        address: Endpoint address
        timeout: Connection timeout in seconds

    Returns:
        Dict with 'address', 'reachable', 'status', 'error'
    """
    url = normalize_endpoint(address)
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        return {"address": address, "reachable": False, "status": None, "error": str(e)}

    return {"address": address, "reachable": True, "status": resp.status_code, "error": None}
