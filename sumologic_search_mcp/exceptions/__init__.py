"""Exceptions raised by the Sumo Logic search MCP server."""

from typing import Any, Dict, Optional, Tuple


class SumoLogicError(Exception):
    """Base exception for all Sumo Logic search operations.

    Subclasses list their extra attributes in ``detail_fields``; the ones
    that are set are included by ``to_dict()``.
    """

    detail_fields: Tuple[str, ...] = ()

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """
        Args:
            message: Human-readable error message
            context: Extra key/value pairs for logs and error responses
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} (Context: {details})"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used in structured logs."""
        data: Dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context,
        }
        for name in self.detail_fields:
            value = getattr(self, name, None)
            if value:
                data[name] = value
        return data


class AuthenticationError(SumoLogicError):
    """Sumo Logic rejected the configured access ID/key (HTTP 401)."""

    detail_fields = ("auth_type",)

    def __init__(self, message: str, auth_type: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.auth_type = auth_type


class APIError(SumoLogicError):
    """A Search Job API call failed.

    Raised for transport failures (no ``status_code``), error status codes
    and response bodies that cannot be parsed.
    """

    detail_fields = ("status_code", "request_id")

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: What failed
            status_code: HTTP status of the response, if one was received
            response_body: Raw response text
            request_id: Value of the ``x-sumo-request-id`` header
            context: Extra key/value pairs
        """
        super().__init__(message, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_id = request_id

    def __str__(self) -> str:
        text = super().__str__()
        return f"{text} (HTTP {self.status_code})" if self.status_code else text

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500

    @property
    def is_retryable(self) -> bool:
        """Transport failures, 5xx, 408 and 429 may succeed on another attempt."""
        if self.status_code is None or self.is_server_error:
            return True
        return self.status_code in (408, 429)


class RateLimitError(APIError):
    """The Search Job API answered with HTTP 429."""

    detail_fields = APIError.detail_fields + ("retry_after", "limit_type")

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        limit_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, status_code=429, context=context)
        self.retry_after = retry_after
        self.limit_type = limit_type

    def __str__(self) -> str:
        text = super().__str__()
        return f"{text} (Retry after {self.retry_after} seconds)" if self.retry_after else text


class ValidationError(SumoLogicError):
    """Tool arguments or request parameters are invalid.

    ``validation_errors`` maps each offending field to its problem.
    """

    detail_fields = ("field_name", "validation_errors")

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        validation_errors: Optional[Dict[str, str]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.field_name = field_name
        self.validation_errors = validation_errors or {}

    def __str__(self) -> str:
        text = super().__str__()
        return f"{text} (Field: {self.field_name})" if self.field_name else text


class ConfigurationError(SumoLogicError):
    """Server configuration is missing or invalid."""

    detail_fields = ("config_key",)

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.config_key = config_key
        self.config_value = config_value


class SearchError(SumoLogicError):
    """A search job could not be created, finished or read.

    Covers rejected submissions, jobs that end up cancelled or force paused,
    and result payloads that cannot be used.
    """

    detail_fields = ("job_id", "search_state")

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        query: Optional[str] = None,
        search_state: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.job_id = job_id
        self.query = query
        self.search_state = search_state


class TimeoutError(SumoLogicError):
    """A request or a search job ran past its time budget."""

    detail_fields = ("timeout_seconds", "operation")

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.timeout_seconds = timeout_seconds
        self.operation = operation


__all__ = [
    "SumoLogicError",
    "AuthenticationError",
    "APIError",
    "RateLimitError",
    "ValidationError",
    "ConfigurationError",
    "SearchError",
    "TimeoutError",
]
