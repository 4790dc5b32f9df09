"""
Search tool for the Sumo Logic search MCP server.

This module implements the ``search_sumologic`` MCP tool: run a log search,
wait for it to finish and return sanitized messages and records.
"""

from typing import Dict, Any, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..api_client import SearchBackend
from ..config import SumoSearchConfig
from ..exceptions import ValidationError, SearchError, TimeoutError
from ..models.config import SearchRequest
from ..models.responses import FailureKind, SearchFailure
from ..search import WAIT_OPERATION, SearchOrchestrator, search

logger = structlog.get_logger(__name__)

TIME_ARGUMENTS = ("from", "to")


class SearchTools:
    """MCP tools for Sumo Logic search operations."""

    def __init__(self, api_client: SearchBackend, config: SumoSearchConfig):
        """Initialize SearchTools with API client.

        Args:
            api_client: Search backend, usually a ``SumoLogicAPIClient``
            config: Server configuration (time zone, polling and failure policy)
        """
        self.api_client = api_client
        self.config = config

    def _orchestrator_options(self) -> Dict[str, Any]:
        return {
            "time_zone": self.config.time_zone,
            "poll_interval": self.config.poll_interval,
            "max_wait": self.config.max_wait,
        }

    async def search_sumologic(self, query: str, **time_range: Optional[str]) -> Dict[str, Any]:
        """Search Sumo Logic logs and return sanitized results.

        Args:
            query: Search query string using Sumo Logic query language
            **time_range: Optional ``from`` and ``to`` bounds in ISO 8601
                format; each defaults independently (24 hours ago / now)

        Returns:
            Dict with ``messages`` and, when the search produced aggregate
            records, ``records``

        Raises:
            ValidationError: If the arguments are invalid
            SearchError: If the search fails and fail-soft mode is disabled
            TimeoutError: If the job does not finish in time and fail-soft
                mode is disabled
        """
        unknown = sorted(set(time_range) - set(TIME_ARGUMENTS))
        if unknown:
            raise ValidationError(
                f"Unexpected arguments: {', '.join(unknown)}",
                field_name=unknown[0]
            )

        try:
            request = SearchRequest(
                query=query,
                from_time=time_range.get("from"),
                to_time=time_range.get("to")
            )
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid search parameters",
                validation_errors={
                    ".".join(str(part) for part in err["loc"]) or "request": err["msg"]
                    for err in e.errors()
                }
            ) from e

        logger.info(
            "Running search_sumologic",
            query=request.query[:100],
            has_from=request.from_time is not None,
            has_to=request.to_time is not None
        )

        if self.config.fail_soft:
            result = await search(
                self.api_client, request.query, request.time_range(), **self._orchestrator_options()
            )
            return result.to_dict()

        outcome = await SearchOrchestrator(self.api_client, **self._orchestrator_options()).run(
            request.query, request.time_range()
        )
        if isinstance(outcome, SearchFailure):
            raise self._failure_to_error(outcome, request.query)
        return outcome.result.to_dict()

    def _failure_to_error(self, failure: SearchFailure, query: str) -> Exception:
        if failure.kind == FailureKind.TIMEOUT:
            return TimeoutError(
                failure.message,
                timeout_seconds=self.config.max_wait,
                operation=WAIT_OPERATION,
                context={"job_id": failure.job_id}
            )
        return SearchError(
            f"Search {failure.kind.value} failed: {failure.message}",
            job_id=failure.job_id,
            query=query
        )

    def get_tool_definitions(self) -> List[Dict[str, Any]]:
        """Get MCP tool definitions for search operations.

        Returns:
            List of tool definitions for MCP server registration
        """
        return [
            {
                "name": "search_sumologic",
                "description": (
                    "Search Sumo Logic logs. Runs the query as a search job, waits for it to "
                    "finish and returns log messages (and aggregate records, if any) with "
                    "sensitive values in _raw and response fields masked. "
                    "Defaults to the last 24 hours."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search query using Sumo Logic query language"
                        },
                        "from": {
                            "type": "string",
                            "description": "ISO 8601 format"
                        },
                        "to": {
                            "type": "string",
                            "description": "ISO 8601 format"
                        }
                    },
                    "required": ["query"]
                }
            }
        ]
