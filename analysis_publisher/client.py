"""GitHub Checks API client.

Usage:
    client = CheckRunClient(api_url="https://api.github.com", token="ghp_xxx")
    result = client.create("owner/name", run)
    client.update("owner/name", result.id, run.with_issues(batch))
"""

import logging
from typing import Any

import requests

from analysis_publisher.models import CheckRun, CheckRunResult

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CheckRunClientError(Exception):
    """Base exception for all client errors."""


class ClientRejectedError(CheckRunClientError):
    """Raised on any HTTP 4xx — GitHub refused the request."""

    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(ClientRejectedError):
    """Raised on HTTP 401 — invalid or expired token."""


class NotFoundError(ClientRejectedError):
    """Raised on HTTP 404 — repository or check run not found."""


class TransportError(CheckRunClientError):
    """Raised when the request failed for a reason other than a client rejection."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NetworkError(TransportError):
    """Raised on connection timeout or unreachable server."""


class ResponseError(TransportError):
    """Raised when a 2xx response body is not a usable check run."""


class ServerError(TransportError):
    """Raised on HTTP 5xx or any other unexpected non-2xx response."""

    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class BearerAuth(requests.auth.AuthBase):
    """Set ``Authorization: Bearer <token>`` on every outgoing request."""

    def __init__(self, token: str) -> None:
        self._header = f"Bearer {token}"

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        logger.debug("Requesting %s", request.url)
        request.headers["Authorization"] = self._header
        return request


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class CheckRunClient:
    """Thin wrapper around the GitHub check-runs endpoints."""

    def __init__(self, api_url: str, token: str, timeout: int = 30) -> None:
        self.base_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.auth = BearerAuth(token)
        self._session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def create(self, repository: str, run: CheckRun) -> CheckRunResult:
        """Create a check run on *repository* (``owner/name``).

        Raises:
            ClientRejectedError: HTTP 4xx (AuthenticationError, NotFoundError)
            ServerError:         HTTP 5xx or other non-2xx
            NetworkError:        Timeout or connection failure
            ResponseError:       2xx without a usable JSON body
            TransportError:      Any other request failure (redirects, bad URL)
        """
        path = f"/repos/{_repo_path(repository)}/check-runs"
        return _parse_result(self._request("POST", path, run.to_json()))

    def update(self, repository: str, run_id: int, run: CheckRun) -> CheckRunResult:
        """Update check run *run_id*. Raises the same errors as :meth:`create`."""
        path = f"/repos/{_repo_path(repository)}/check-runs/{run_id}"
        return _parse_result(self._request("PATCH", path, run.to_json()))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _request(self, method: str, endpoint: str, payload: dict[str, Any]) -> dict:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self._session.request(method, url, json=payload, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'", exc
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(f"Unable to reach GitHub API at '{self.base_url}'", exc) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Request to '{url}' failed: {exc}", exc) from exc

        status = response.status_code
        if status == 401:
            raise AuthenticationError(
                "Authentication failed — check that your token is valid and not expired.",
                status, response.text,
            )
        if status == 404:
            raise NotFoundError(f"Resource not found: {url}", status, response.text)
        if 400 <= status < 500:
            raise ClientRejectedError(
                f"Request rejected with {status} by {url}", status, response.text
            )
        if not response.ok:
            raise ServerError(
                f"Unexpected response {status} from {url}: {response.text[:200]}",
                status, response.text,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ResponseError(f"Invalid JSON in response from {url}", exc) from exc


def _parse_result(data: dict) -> CheckRunResult:
    try:
        return CheckRunResult.from_json(data)
    except (ValueError, TypeError) as exc:
        raise ResponseError(f"Unexpected check run response: {exc}", exc) from exc


def _repo_path(repository: str) -> str:
    owner, sep, name = repository.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Repository must be 'owner/name', got {repository!r}")
    return f"{owner}/{name}"
