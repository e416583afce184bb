"""
HTTP client for the mirrored resource.
Metadata probes and conditional fetches, with a shared session and timeout.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Mapping

import requests
from requests.structures import CaseInsensitiveDict

from .settings import settings
from .errors import FetchError, ProbeError
from .freshness.core import FreshnessScheme

logger = logging.getLogger("urlcache.http_client")


@dataclass
class FetchResult:
    """Outcome of one conditional GET."""
    status_code: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""

    @property
    def not_modified(self) -> bool:
        """True when the server reported the resource unchanged (304)."""
        return self.status_code == requests.codes.not_modified


class ResourceClient:
    """
    Issues requests against a single URL.

    Usage:
        client = ResourceClient("https://example.com/data.json")
        headers = client.probe()
        result = client.fetch(FreshnessScheme.entity_tag())
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            url: Resource to mirror
            session: Shared session (a private one is created if omitted)
            timeout: Per-request timeout in seconds (defaults to settings)
        """
        self.url = url
        self._owns_session = session is None
        self._session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.request_timeout

    def new_request(self, method: str = "GET") -> requests.Request:
        """Build an unsent request that a freshness scheme can decorate."""
        return requests.Request(
            method,
            self.url,
            headers={"User-Agent": settings.user_agent},
        )

    def _send(self, request: requests.Request) -> requests.Response:
        prepared = self._session.prepare_request(request)
        # Session.send skips environment proxies and CA bundles; Session.request merges them here
        env_kwargs = self._session.merge_environment_settings(prepared.url, {}, None, None, None)
        return self._session.send(
            prepared,
            timeout=self.timeout,
            allow_redirects=True,
            **env_kwargs,
        )

    def probe(self) -> Mapping[str, str]:
        """
        Send a HEAD request and return the response headers.

        Raises:
            ProbeError: On transport failure or a 5xx response
        """
        try:
            response = self._send(self.new_request("HEAD"))
        except requests.RequestException as e:
            raise ProbeError(f"Unable to probe {self.url}: {e}") from e

        if response.status_code >= 500:
            raise ProbeError(f"Unable to probe {self.url}: HTTP {response.status_code}")

        logger.debug(f"Probe {self.url} -> {response.status_code}")
        return response.headers

    def fetch(self, scheme: FreshnessScheme) -> FetchResult:
        """
        Send a GET carrying the scheme's conditional header.

        Raises:
            FetchError: On transport failure or an error status
        """
        request = self.new_request("GET")
        scheme.prepare(request)

        try:
            response = self._send(request)
            if response.status_code == requests.codes.not_modified:
                return FetchResult(
                    status_code=response.status_code,
                    headers=CaseInsensitiveDict(response.headers),
                )
            response.raise_for_status()
            body = response.content
        except requests.RequestException as e:
            raise FetchError(f"Unable to fetch {self.url}: {e}") from e

        logger.debug(f"Fetched {len(body)} bytes from {self.url} ({response.status_code})")
        return FetchResult(
            status_code=response.status_code,
            headers=CaseInsensitiveDict(response.headers),
            body=body,
        )

    def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session:
            self._session.close()
