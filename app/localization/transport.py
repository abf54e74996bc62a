"""HTTP transport to the locale server.

Sends translation requests as JSON and parses the response envelope.
Every failure (network error, non-success status, undecodable body) is
raised as TransportFailure so the refresh coordinator can treat it as a
no-op refresh.

Usage:
    client = LocaleServerClient(base_url="https://api.locales.glitchedpolygons.com")
    response = client.fetch_translations(request, timeout=30)
    if response.has_items:
        ...
"""

import json
from typing import Optional, Protocol
from urllib.parse import urljoin

import requests
from pydantic import ValidationError

from core.config import (
    DEFAULT_LOCALE_SERVER_BASE_URL,
    DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT,
)
from core.logging import get_module_logger
from localization.errors import TransportFailure
from localization.models import (
    HealthCheckResult,
    TranslationRequest,
    TranslationResponse,
)

logger = get_module_logger()

HEALTH_CHECK_ENDPOINT = "/api/v1/keys/rsa/public"
API_KEY_HEADER = "API-Key"


class TransportClient(Protocol):
    """Interface of the locale server transport used by the coordinator."""

    base_url: str
    translation_endpoint: str

    def fetch_translations(
        self, request: TranslationRequest, timeout: float
    ) -> TranslationResponse:
        """Send a translation request and return the parsed response.

        Raises:
            TransportFailure: On any network, status or decoding failure.
        """
        ...

    def check_health(self, timeout: Optional[float] = None) -> HealthCheckResult:
        """Probe the server's reachability endpoint. Never raises."""
        ...

    def change_target(self, base_url: str, translation_endpoint: str) -> None:
        """Point the client at another server."""
        ...


class LocaleServerClient:
    """requests-based TransportClient for a Glitched Locale Server.

    Attributes:
        base_url: Base URL of the locale server.
        translation_endpoint: Path of the translation endpoint.
        timeout: Default timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_LOCALE_SERVER_BASE_URL,
        translation_endpoint: str = DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT,
        api_key: str = "",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.translation_endpoint = translation_endpoint
        self.timeout = timeout
        self._api_key = api_key
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._logger = logger.bind(component="locale_server_client")

    def change_target(self, base_url: str, translation_endpoint: str) -> None:
        self.base_url = base_url
        self.translation_endpoint = translation_endpoint
        self._logger.info(
            "locale_server_target_changed",
            base_url=base_url,
            translation_endpoint=translation_endpoint,
        )

    def fetch_translations(
        self, request: TranslationRequest, timeout: Optional[float] = None
    ) -> TranslationResponse:
        """POST a translation request to the translation endpoint.

        Args:
            request: TranslationRequest to send.
            timeout: Request timeout in seconds (overrides default).

        Returns:
            Parsed TranslationResponse.

        Raises:
            TransportFailure: On network error, non-2xx status or a body
                that is not a valid response envelope.
        """
        url = urljoin(self.base_url, self.translation_endpoint)
        timeout = timeout or self.timeout
        headers = {}
        if self._api_key:
            headers[API_KEY_HEADER] = self._api_key

        log = self._logger.bind(url=url, key_count=len(request.keys))
        log.debug("translation_request_sent")

        try:
            response = self._session.post(
                url,
                json=request.to_wire(),
                headers=headers,
                timeout=timeout,
            )
        except requests.Timeout as e:
            log.warning("translation_request_timeout", timeout=timeout)
            raise TransportFailure(f"Request timeout after {timeout}s") from e
        except requests.RequestException as e:
            log.warning("translation_request_connection_error", error=str(e))
            raise TransportFailure(f"Request failed: {e}") from e

        log = log.bind(status_code=response.status_code)

        if not 200 <= response.status_code < 300:
            log.warning("translation_request_unsuccessful", body=response.text[:200])
            raise TransportFailure(
                f"Locale server answered with status {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return TranslationResponse()

        try:
            body = TranslationResponse.model_validate(response.json())
        except (json.JSONDecodeError, ValueError, ValidationError) as e:
            log.warning("translation_response_invalid", error=str(e))
            raise TransportFailure(
                f"Invalid response body: {e}", status_code=response.status_code
            ) from e

        if body.errors:
            log.warning(
                "translation_response_errors",
                errors=[error.model_dump() for error in body.errors],
            )

        log.debug("translation_response_received", item_count=len(body.items or []))
        return body

    def check_health(self, timeout: Optional[float] = None) -> HealthCheckResult:
        """GET the reachability probe endpoint.

        Args:
            timeout: Request timeout in seconds (overrides default).

        Returns:
            HealthCheckResult; unreachable servers yield reachable=False.
        """
        url = urljoin(self.base_url, HEALTH_CHECK_ENDPOINT)
        try:
            response = self._session.get(url, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            self._logger.info("locale_server_unreachable", url=url, error=str(e))
            return HealthCheckResult(reachable=False)

        reachable = 200 <= response.status_code < 300
        self._logger.info(
            "locale_server_health_checked",
            url=url,
            status_code=response.status_code,
            reachable=reachable,
        )
        return HealthCheckResult(
            reachable=reachable,
            status_code=response.status_code,
            body=response.text,
        )
