"""Tool error reporting and logging setup for the Sumo Logic search MCP server."""

import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import structlog

from .exceptions import (
    SumoLogicError,
    AuthenticationError,
    APIError,
    RateLimitError,
    ValidationError,
    ConfigurationError,
    SearchError,
    TimeoutError
)

logger = structlog.get_logger(__name__)

# Most specific classes first; the first match names the error
ERROR_LABELS: List[Tuple[Type[Exception], str]] = [
    (ValidationError, "Validation Error"),
    (AuthenticationError, "Authentication Error"),
    (RateLimitError, "Rate Limit Error"),
    (APIError, "API Error"),
    (SearchError, "Search Error"),
    (TimeoutError, "Timeout Error"),
    (ConfigurationError, "Configuration Error"),
    (SumoLogicError, "Sumo Logic Error"),
]


def _validation_details(error: ValidationError) -> List[str]:
    return [f"  - {field}: {problem}" for field, problem in error.validation_errors.items()]


def _authentication_details(error: AuthenticationError) -> List[str]:
    return ["Please check your Sumo Logic credentials and try again."]


def _rate_limit_details(error: RateLimitError) -> List[str]:
    return [f"Retry after: {error.retry_after} seconds"] if error.retry_after else []


def _api_details(error: APIError) -> List[str]:
    lines = []
    if error.status_code:
        lines.append(f"HTTP Status: {error.status_code}")
    if error.request_id:
        lines.append(f"Request ID: {error.request_id}")
    if error.is_retryable:
        lines.append("This error may be temporary. Please try again.")
    return lines


def _search_details(error: SearchError) -> List[str]:
    lines = []
    if error.job_id:
        lines.append(f"Job ID: {error.job_id}")
    if error.search_state:
        lines.append(f"Search State: {error.search_state}")
    return lines


def _timeout_details(error: TimeoutError) -> List[str]:
    lines = [f"Timeout: {error.timeout_seconds} seconds"] if error.timeout_seconds else []
    lines.append("Consider narrowing the time range or the query.")
    return lines


def _configuration_details(error: ConfigurationError) -> List[str]:
    return [f"Configuration Key: {error.config_key}"] if error.config_key else []


ERROR_DETAILS: Dict[Type[Exception], Callable[[Any], List[str]]] = {
    ValidationError: _validation_details,
    AuthenticationError: _authentication_details,
    RateLimitError: _rate_limit_details,
    APIError: _api_details,
    SearchError: _search_details,
    TimeoutError: _timeout_details,
    ConfigurationError: _configuration_details,
}


class ErrorHandler:
    """Turns tool exceptions into MCP error results and logs them."""

    def __init__(self, server_name: str = "sumologic-search-mcp"):
        self.server_name = server_name
        self.logger = logger.bind(server_name=server_name)

    def handle_tool_error(
        self,
        error: Exception,
        tool_name: str,
        arguments: Dict[str, Any],
        execution_time_ms: Optional[float] = None
    ) -> Dict[str, Any]:
        """Log a tool failure and build the MCP error result for it.

        Args:
            error: Exception raised by the tool
            tool_name: Name of the tool that failed
            arguments: Arguments the tool was called with; only the keys are logged
            execution_time_ms: Time spent in the tool

        Returns:
            Dict with ``content`` and ``isError`` keys
        """
        self._log_error(error, tool_name, arguments, execution_time_ms)
        return {
            "content": [{"type": "text", "text": self.format_error_response(error, tool_name)}],
            "isError": True
        }

    def format_error_response(self, error: Exception, tool_name: str) -> str:
        """Format an exception as the text shown to the MCP client."""
        for error_class, label in ERROR_LABELS:
            if isinstance(error, error_class):
                details = ERROR_DETAILS.get(error_class, lambda _: [])(error)
                return "\n".join([f"{label} in {tool_name}: {error.message}", *details])

        return f"Unexpected Error in {tool_name}: {error}\nError Type: {type(error).__name__}"

    def _log_error(
        self,
        error: Exception,
        tool_name: str,
        arguments: Dict[str, Any],
        execution_time_ms: Optional[float]
    ) -> None:
        event: Dict[str, Any] = {"tool_name": tool_name, "argument_keys": sorted(arguments or {})}
        if execution_time_ms is not None:
            event["execution_time_ms"] = round(execution_time_ms, 2)

        if not isinstance(error, SumoLogicError):
            self.logger.error(
                "Tool unexpected error",
                error_type=type(error).__name__,
                error_message=str(error),
                traceback=traceback.format_exc(),
                **event
            )
            return

        # to_dict() leaves out queries and other argument values
        event.update(error.to_dict())

        expected = isinstance(error, (ValidationError, RateLimitError)) or (
            isinstance(error, APIError) and error.is_client_error
        )
        if expected:
            self.logger.warning("Tool call rejected", **event)
        else:
            self.logger.error("Tool call failed", **event)

    def log_request(self, tool_name: str, arguments: Dict[str, Any]) -> None:
        self.logger.debug("Tool request received", tool_name=tool_name, argument_keys=sorted(arguments or {}))

    def log_response(
        self,
        tool_name: str,
        success: bool,
        execution_time_ms: float,
        response_size: Optional[int] = None
    ) -> None:
        """Log the end of a tool call.

        Args:
            tool_name: Name of the tool that was called
            success: Whether the tool returned a result
            execution_time_ms: Time spent in the tool
            response_size: Length of the response text, when there is one
        """
        log = self.logger.info if success else self.logger.warning
        extra = {} if response_size is None else {"response_size": response_size}
        log(
            "Tool request completed",
            tool_name=tool_name,
            success=success,
            execution_time_ms=round(execution_time_ms, 2),
            **extra
        )

    @staticmethod
    def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
        """Configure structlog on top of stdlib logging.

        Logs go to stderr; stdout carries the MCP stdio transport.

        Args:
            log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
            log_format: ``json`` or ``text``
        """
        renderer = (
            structlog.processors.JSONRenderer()
            if log_format.lower() == "json"
            else structlog.dev.ConsoleRenderer()
        )
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(level=getattr(logging, log_level.upper()), format="%(message)s", force=True)
