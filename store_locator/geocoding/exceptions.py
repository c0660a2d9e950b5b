"""Custom exceptions for geocode providers."""


class GeocodeError(Exception):
    """Base exception for all geocode provider errors.

    The enrichment pipeline catches this to record the failure on the store
    instead of aborting the batch.
    """

    pass


class GeocodeHTTPError(GeocodeError):
    """HTTP request failed (4xx/5xx status or connection failure)."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """
        Args:
            message: Human-readable error message
            status_code: HTTP status code (0 when no response was received)
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class GeocodeTimeoutError(GeocodeError):
    """HTTP request timed out."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class GeocodeResponseError(GeocodeError):
    """Response could not be parsed or lacked the expected fields."""

    pass


class GeocodeStatusError(GeocodeError):
    """The provider answered with a non-success API status.

    Examples: OVER_QUERY_LIMIT, REQUEST_DENIED, INVALID_REQUEST.
    """

    def __init__(self, message: str, status: str) -> None:
        super().__init__(message)
        self.status = status


class GeocodeRequestError(GeocodeError):
    """The request could not be built (e.g. empty address)."""

    pass
