"""Google Geocoding API client."""

import logging
from typing import Any, Dict, List, Optional

import requests

from store_locator.logging import get_logger

from .exceptions import (
    GeocodeHTTPError,
    GeocodeRequestError,
    GeocodeResponseError,
    GeocodeStatusError,
    GeocodeTimeoutError,
)
from .models import GeocodeCandidate

logger = get_logger(__name__, component="geocoding")

DEFAULT_ENDPOINT = "https://maps.googleapis.com/maps/api/geocode/json"
USER_AGENT = "StoreLocator/1.0"

_SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}


class GoogleGeocodeClient:
    """Geocode provider backed by the Google Geocoding API.

    API Details:
        Endpoint: https://maps.googleapis.com/maps/api/geocode/json
        Method: GET
        Authentication: ``key`` query parameter
        Response: JSON object with ``status`` and ``results`` array
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: int = 10,
        region: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Args:
            api_key: Geocoding API key
            endpoint: API endpoint URL
            timeout: HTTP request timeout in seconds
            region: Optional ccTLD region bias (e.g. "ca", "au")
            session: Optional requests session (tests inject one)

        Raises:
            GeocodeRequestError: If api_key is empty or timeout is not positive
        """
        if not api_key or not api_key.strip():
            raise GeocodeRequestError("api_key cannot be empty")
        if timeout <= 0:
            raise GeocodeRequestError(f"Timeout must be positive, got: {timeout}")

        self.api_key = api_key.strip()
        self.endpoint = endpoint
        self.timeout = timeout
        self.region = region

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def geocode(self, address: str) -> List[GeocodeCandidate]:
        """Geocode one address.

        Args:
            address: Free-form address string

        Returns:
            Candidates in provider order; empty when the API reports ZERO_RESULTS

        Raises:
            GeocodeRequestError: If the address is empty
            GeocodeError: Subclasses for HTTP, timeout, parsing and API-status failures
        """
        if not address or not address.strip():
            raise GeocodeRequestError("address is empty")

        params = {"address": address, "key": self.api_key}
        if self.region:
            params["region"] = self.region

        payload = self._make_request(params)

        status = payload.get("status")
        if status not in _SUCCESS_STATUSES:
            message = payload.get("error_message") or status or "missing status"
            logger.error(
                f"Geocoding failed with status {status}",
                extra={
                    "event": "geocode.request.status_error",
                    "status": status,
                    "error": message,
                },
            )
            raise GeocodeStatusError(f"{status}: {message}", status=str(status))

        if status == "ZERO_RESULTS":
            return []

        results = payload.get("results", [])
        if not isinstance(results, list):
            raise GeocodeResponseError(
                f"Expected 'results' field to be array, got {type(results).__name__}"
            )

        candidates = []
        for index, result in enumerate(results):
            try:
                candidates.append(self._parse_candidate(result))
            except GeocodeResponseError as e:
                logger.warning(
                    f"Skipping malformed geocode result {index}: {e}",
                    extra={"event": "geocode.response.result_skipped", "index": index},
                )

        if results and not candidates:
            raise GeocodeResponseError(f"No well-formed result among {len(results)} returned")

        return candidates

    def _make_request(self, params: Dict[str, str]) -> Dict[str, Any]:
        """GET the endpoint and return the decoded JSON object.

        Raises:
            GeocodeHTTPError: On 4xx/5xx status or connection failure
            GeocodeTimeoutError: On request timeout
            GeocodeResponseError: On invalid JSON
        """
        url = self.endpoint
        try:
            logger.debug(
                f"HTTP GET request to {url}",
                extra={"event": "geocode.request.sent", "url": url, "timeout": self.timeout},
            )

            response = self._session.get(url, params=params, timeout=self.timeout)

            if response.status_code >= 400:
                is_retryable = response.status_code >= 500
                logger.log(
                    logging.WARNING if is_retryable else logging.ERROR,
                    f"HTTP {response.status_code} error from {url}",
                    extra={
                        "event": "geocode.request.http_error",
                        "status_code": response.status_code,
                        "url": url,
                    },
                )
                raise GeocodeHTTPError(
                    f"HTTP {response.status_code}: {response.reason}",
                    status_code=response.status_code,
                    url=url,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise GeocodeResponseError(f"Failed to parse JSON response from {url}: {e}") from e

            if not isinstance(data, dict):
                raise GeocodeResponseError(
                    f"Expected JSON object response, got {type(data).__name__}"
                )
            return data

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "geocode.request.timeout", "url": url, "timeout": self.timeout},
            )
            raise GeocodeTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            # Connection errors quote the full request URL, key included
            reason = self._redact(str(e))
            logger.error(
                f"Request to {url} failed: {reason}",
                extra={
                    "event": "geocode.request.failed",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise GeocodeHTTPError(f"Request to {url} failed: {reason}", status_code=0, url=url) from e

    def _redact(self, text: str) -> str:
        return text.replace(self.api_key, "***")

    @staticmethod
    def _parse_candidate(result: Any) -> GeocodeCandidate:
        try:
            point = result["geometry"]["location"]
            return GeocodeCandidate(
                latitude=float(point["lat"]),
                longitude=float(point["lng"]),
                formatted_address=result.get("formatted_address"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodeResponseError(f"Malformed geocode result: {e}") from e
