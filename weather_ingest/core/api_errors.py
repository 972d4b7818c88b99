"""
Error taxonomy for the ingestion pipeline.

Fetch failures describe upstream problems and say whether a retry makes
sense. Parse, target and persistence failures describe what went wrong
after a payload arrived. None of these is fatal to the process: callers
log them and move on to the next record, target or tick.
"""

from typing import Optional, Dict, Any


class FetchFailure(Exception):
    """
    Upstream feed unreachable or answered with a non-success status.

    Attributes:
        message: Human-readable error description
        source: Feed name (e.g., 'aviation', 'nws', 'nhc')
        status_code: HTTP status code if applicable
        response_data: Raw response data for debugging
        retryable: Whether this error should trigger a retry
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.status_code = status_code
        self.response_data = response_data
        self.retryable = retryable

    def __str__(self) -> str:
        parts = [self.message]
        if self.source:
            parts.insert(0, f"[{self.source}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source": self.source,
            "status_code": self.status_code,
            "retryable": self.retryable,
            "response_data": self.response_data,
        }


class RetryableFetchFailure(FetchFailure):
    """
    Transient failure: 5xx responses, timeouts, dropped connections.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            source=source,
            status_code=status_code,
            response_data=response_data,
            retryable=True,
        )


class RateLimitFailure(FetchFailure):
    """
    HTTP 429. Retryable, but only after ``retry_after`` seconds.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        retry_after: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            source=source,
            status_code=429,
            response_data=response_data,
            retryable=True,
        )
        self.retry_after = retry_after or 60


class FatalFetchFailure(FetchFailure):
    """
    Permanent failure (400, 401, 403, 404): retrying will not help.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            source=source,
            status_code=status_code,
            response_data=response_data,
            retryable=False,
        )


class ConfigurationError(FatalFetchFailure):
    """
    A feed cannot be queried because a required setting is missing.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        missing_config: Optional[str] = None,
    ):
        super().__init__(message=message, source=source)
        self.missing_config = missing_config


class ParseFailure(Exception):
    """
    A payload, or one record inside it, is missing required fields.

    Raised per record; adapters count it and keep going.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        record: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.record = record

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {self.message}"
        return self.message


class TargetNotFound(Exception):
    """No location matches the requested identifier or airport code."""

    def __init__(self, target: Any, source: Optional[str] = None):
        super().__init__(f"Target not found: {target}")
        self.target = target
        self.source = source


class PersistenceFailure(Exception):
    """The transactional commit of a batch failed; the batch was rolled back."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {self.message}"
        return self.message


def classify_http_error(
    status_code: int, response_text: str = "", source: Optional[str] = None
) -> FetchFailure:
    """
    Classify an HTTP error status into the matching FetchFailure subclass.

    Args:
        status_code: HTTP status code
        response_text: Response body text
        source: Feed name

    Returns:
        FetchFailure subclass instance
    """
    if status_code == 429:
        return RateLimitFailure(
            message=f"Rate limited: {response_text[:200]}", source=source
        )
    elif status_code in (400, 401, 403, 404):
        return FatalFetchFailure(
            message=f"Request rejected: {response_text[:200]}",
            source=source,
            status_code=status_code,
        )
    elif 500 <= status_code < 600:
        return RetryableFetchFailure(
            message=f"Server error: {response_text[:200]}",
            source=source,
            status_code=status_code,
        )
    else:
        return FetchFailure(
            message=f"HTTP error {status_code}: {response_text[:200]}",
            source=source,
            status_code=status_code,
            retryable=False,
        )
