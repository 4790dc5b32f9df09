"""HTTP client for the Sumo Logic Search Job API."""

import json
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from .auth import SumoLogicAuth
from .config import SumoSearchConfig
from .exceptions import APIError, AuthenticationError, RateLimitError, TimeoutError
from .resilience import RetryConfig, RetryableOperation


logger = logging.getLogger(__name__)

SEARCH_JOBS_PATH = "/api/v1/search/jobs"

# Largest page the messages/records endpoints accept
MAX_RESULT_LIMIT = 10000


class SearchBackend(Protocol):
    """Operations the search orchestrator needs from a log search backend."""

    async def create_search_job(self, params: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def get_search_job_status(self, job_id: str) -> Dict[str, Any]:
        ...

    async def get_messages(self, job_id: str) -> Dict[str, Any]:
        ...

    async def get_records(self, job_id: str) -> Dict[str, Any]:
        ...

    async def delete_search_job(self, job_id: str) -> None:
        ...


class SumoLogicAPIClient:
    """Client for the Sumo Logic Search Job API.

    Implements ``SearchBackend`` over HTTPS. The Search Job API pins a job to
    the node that created it through cookies, so a single
    ``httpx.AsyncClient`` (which keeps its cookie jar) is reused for every
    call.

    Attributes:
        config: Server configuration
        auth: Authentication header provider
    """

    def __init__(
        self,
        config: SumoSearchConfig,
        auth: SumoLogicAuth,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry: Optional[RetryableOperation] = None
    ):
        """Initialize API client with configuration and authentication.

        Args:
            config: Configuration containing API settings
            auth: Authentication header provider
            transport: Optional httpx transport, mostly for tests
            retry: Optional retry strategy, built from ``config`` by default
        """
        self.config = config
        self.auth = auth
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None
        self.retry = retry or RetryableOperation(
            RetryConfig(
                max_attempts=self.config.max_retries + 1,
                base_delay=self.config.rate_limit_delay,
                max_delay=max(self.config.rate_limit_delay, min(self.config.timeout / 2, 30.0)),
            )
        )

        logger.info(
            "Initialized Sumo Logic search API client",
            extra={
                "endpoint": self.config.endpoint,
                "timeout": self.config.timeout,
                "max_retries": self.config.max_retries
            }
        )

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.endpoint,
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                headers={
                    "User-Agent": f"{self.config.server_name}/{self.config.server_version}",
                    "Accept": "application/json",
                    "Content-Type": "application/json"
                }
            )
        return self._http_client

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        operation: str = "api"
    ) -> httpx.Response:
        """Make an HTTP request, retrying transient failures.

        Raises:
            APIError: If the request fails after all retries
            RateLimitError: If rate limited on the last attempt
            TimeoutError: If the request times out on the last attempt
        """
        async def make_single_request() -> httpx.Response:
            logger.debug(
                f"Making {method} request to {path}",
                extra={"params": params, "has_json_data": json_data is not None, "operation": operation}
            )
            try:
                response = await self.http_client.request(
                    method=method,
                    url=path,
                    params=params,
                    json=json_data,
                    headers=self.auth.get_auth_headers()
                )
            except httpx.TimeoutException as e:
                raise TimeoutError(
                    f"Request to {path} timed out",
                    timeout_seconds=self.config.timeout,
                    operation=f"{method} {path}"
                ) from e
            except httpx.RequestError as e:
                raise APIError(
                    f"Request to {path} failed: {e}",
                    context={"method": method, "path": path, "error_type": type(e).__name__}
                ) from e

            logger.debug(
                "Received response",
                extra={
                    "status_code": response.status_code,
                    "request_id": response.headers.get("x-sumo-request-id"),
                    "path": path
                }
            )
            self._handle_response_errors(response, path, method)
            return response

        return await self.retry.execute(make_single_request, operation=operation)

    def _handle_response_errors(self, response: httpx.Response, path: str, method: str) -> None:
        """Raise the matching exception for an error response.

        Raises:
            RateLimitError: If rate limited
            AuthenticationError: If the credentials are rejected
            APIError: For other HTTP errors
        """
        if response.is_success:
            return

        request_id = response.headers.get("x-sumo-request-id")
        context = {"path": path, "method": method}

        if response.status_code == 429:
            raise RateLimitError(
                f"Rate limit exceeded for {path}",
                retry_after=self._parse_retry_after(response),
                limit_type="api_requests",
                context=context
            )

        if response.status_code == 401:
            raise AuthenticationError(
                "Authentication failed - invalid or expired credentials",
                auth_type="basic",
                context={**context, "request_id": request_id} if request_id else context
            )

        error_message = f"HTTP {response.status_code} error for {path}"
        try:
            error_data = response.json()
            if isinstance(error_data, dict) and "message" in error_data:
                error_message = error_data["message"]
        except (json.JSONDecodeError, ValueError):
            pass

        raise APIError(
            error_message,
            status_code=response.status_code,
            response_body=response.text,
            request_id=request_id,
            context=context
        )

    def _parse_retry_after(self, response: httpx.Response) -> Optional[float]:
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                return float(retry_after_header)
            except ValueError:
                return None
        return None

    def _parse_json_response(self, response: httpx.Response) -> Dict[str, Any]:
        """Parse a JSON object response body.

        Raises:
            APIError: If response cannot be parsed as a JSON object
        """
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise APIError(
                f"Failed to parse JSON response: {e}",
                status_code=response.status_code,
                response_body=response.text,
                request_id=response.headers.get("x-sumo-request-id"),
                context={"content_type": response.headers.get("content-type")}
            ) from e
        if not isinstance(data, dict):
            raise APIError(
                f"Expected a JSON object, got {type(data).__name__}",
                status_code=response.status_code,
                request_id=response.headers.get("x-sumo-request-id")
            )
        return data

    # Search Job API

    async def create_search_job(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Create a search job.

        Args:
            params: Job definition with ``query``, ``from``, ``to`` and ``timeZone``

        Returns:
            Response body, containing the job ``id``
        """
        response = await self._make_request(
            "POST", SEARCH_JOBS_PATH, json_data=params, operation="create_search_job"
        )
        job = self._parse_json_response(response)
        if not job.get("id"):
            raise APIError("Search job ID not returned from API", status_code=response.status_code)

        logger.info("Search job created", extra={"job_id": job["id"]})
        return job

    async def get_search_job_status(self, job_id: str) -> Dict[str, Any]:
        """Get the status of a search job (``state``, ``messageCount``, ``recordCount``)."""
        response = await self._make_request(
            "GET", f"{SEARCH_JOBS_PATH}/{job_id}", operation="get_search_job_status"
        )
        return self._parse_json_response(response)

    async def get_messages(self, job_id: str, offset: int = 0, limit: int = MAX_RESULT_LIMIT) -> Dict[str, Any]:
        """Get raw log messages of a finished search job."""
        response = await self._make_request(
            "GET",
            f"{SEARCH_JOBS_PATH}/{job_id}/messages",
            params={"offset": offset, "limit": limit},
            operation="get_messages"
        )
        return self._parse_json_response(response)

    async def get_records(self, job_id: str, offset: int = 0, limit: int = MAX_RESULT_LIMIT) -> Dict[str, Any]:
        """Get aggregate records of a finished search job."""
        response = await self._make_request(
            "GET",
            f"{SEARCH_JOBS_PATH}/{job_id}/records",
            params={"offset": offset, "limit": limit},
            operation="get_records"
        )
        return self._parse_json_response(response)

    async def delete_search_job(self, job_id: str) -> None:
        """Delete a search job and free its resources on the backend."""
        await self._make_request(
            "DELETE", f"{SEARCH_JOBS_PATH}/{job_id}", operation="delete_search_job"
        )
        logger.debug("Search job deleted", extra={"job_id": job_id})

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

        logger.info("Sumo Logic search API client closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
