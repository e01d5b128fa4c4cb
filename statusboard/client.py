"""Read-only client for the status server's JSON API."""

import base64
import logging
from typing import Any
from urllib.parse import quote

import requests

from .config import CHART_DURATIONS, ServerConfig
from .models import EndpointStatus, PayloadError, parse_endpoint_statuses
from .storage import Storage

logger = logging.getLogger(__name__)

USER_AGENT = "statusboard/0.1"


class ApiError(Exception):
    """Raised when a request fails or returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def encode_credentials(username: str, password: str) -> str:
    """Return the Basic auth token for a username and password."""
    return base64.b64encode(f"{username}:{password}".encode()).decode("ascii")


def _check_duration(duration: str) -> str:
    if duration not in CHART_DURATIONS:
        raise ValueError(f"Invalid duration '{duration}'. Must be one of: {CHART_DURATIONS}")
    return duration


class StatusClient:
    """Fetches configuration and endpoint statuses from the server.

    Cookies persist on the underlying session, and a Basic ``Authorization``
    header is added whenever credentials are stored.
    """

    def __init__(
        self,
        config: ServerConfig,
        storage: Storage | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def close(self) -> None:
        self._session.close()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._storage is not None:
            auth = self._storage.get_auth()
            if auth and auth.get("credentials"):
                headers["Authorization"] = f"Basic {auth['credentials']}"
        return headers

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"Request to {url} failed: {e}")

        if response.status_code != 200:
            raise ApiError(
                f"Request to {url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise PayloadError(f"Response from {url} is not valid JSON: {e}")

    def _endpoint_path(self, key: str) -> str:
        return f"/api/v1/endpoints/{quote(key, safe='')}"

    def get_config(self) -> dict:
        """Fetch the server's UI configuration."""
        data = self._get_json("/api/v1/config")
        if not isinstance(data, dict):
            raise PayloadError("Config payload must be an object")
        return data

    def get_endpoint_statuses(self, page: int = 1) -> list:
        """Fetch one page of endpoint statuses as decoded JSON."""
        data = self._get_json("/api/v1/endpoints/statuses", params={"page": page})
        if not isinstance(data, list):
            raise PayloadError("Endpoint statuses payload must be a list")
        return data

    def get_endpoint_status(self, key: str, page: int = 1) -> dict:
        """Fetch one page of a single endpoint's results and events as decoded JSON."""
        data = self._get_json(f"{self._endpoint_path(key)}/statuses", params={"page": page})
        if not isinstance(data, dict):
            raise PayloadError("Endpoint status payload must be an object")
        return data

    def fetch_endpoint_statuses(self, page: int = 1) -> list[EndpointStatus]:
        """Fetch and parse one page of endpoint statuses."""
        return parse_endpoint_statuses(self.get_endpoint_statuses(page))

    def fetch_endpoint_status(self, key: str, page: int = 1) -> EndpointStatus:
        """Fetch and parse a single endpoint's status."""
        return EndpointStatus.from_dict(self.get_endpoint_status(key, page))

    # Image URLs, rendered by the server

    def health_badge_url(self, key: str) -> str:
        return f"{self.base_url}{self._endpoint_path(key)}/health/badge.svg"

    def uptime_badge_url(self, key: str, duration: str) -> str:
        return f"{self.base_url}{self._endpoint_path(key)}/uptimes/{_check_duration(duration)}/badge.svg"

    def response_time_badge_url(self, key: str, duration: str) -> str:
        return f"{self.base_url}{self._endpoint_path(key)}/response-times/{_check_duration(duration)}/badge.svg"

    def response_time_chart_url(self, key: str, duration: str) -> str:
        return f"{self.base_url}{self._endpoint_path(key)}/response-times/{_check_duration(duration)}/chart.svg"
