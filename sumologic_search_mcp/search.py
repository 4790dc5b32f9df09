"""
Search orchestration against the Sumo Logic Search Job API.

One call runs one job through its whole life:

    SUBMITTING -> POLLING -> FETCHING -> CLEANUP -> DONE

``SearchOrchestrator.run`` reports the stage that failed through a
``SearchFailure``; ``search`` keeps the fail-soft contract and turns any
failure into an empty result.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple

import structlog

from .api_client import SearchBackend
from .config import DEFAULT_TIME_ZONE
from .exceptions import SearchError, TimeoutError
from .masking import mask_sensitive_info
from .models.responses import (
    CleanupOutcome,
    FailureKind,
    SearchFailure,
    SearchJobStatus,
    SearchOutcome,
    SearchResult,
    SearchSuccess,
)
from .sanitizer import MaskFunc, sanitize_items
from .time_utils import TimeParser

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_WAIT = 300.0

# Operation name marking the max_wait deadline, as opposed to a request timeout
WAIT_OPERATION = "wait_for_search_job"


def _query_preview(query: str) -> str:
    return query[:100] + "..." if len(query) > 100 else query


def _result_items(payload: Any, key: str) -> List[Any]:
    """Pull the item list out of a messages or records response."""
    if not isinstance(payload, Mapping):
        raise SearchError(f"Unexpected {key} response of type {type(payload).__name__}")
    items = payload.get(key) or []
    if not isinstance(items, list):
        raise SearchError(f"Unexpected {key} payload of type {type(items).__name__}")
    return items


class SearchOrchestrator:
    """Runs a single search job and returns sanitized results.

    Instances hold no per-search state, so one orchestrator can serve
    concurrent searches.
    """

    def __init__(
        self,
        client: SearchBackend,
        time_zone: str = DEFAULT_TIME_ZONE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: float = DEFAULT_MAX_WAIT,
        mask: MaskFunc = mask_sensitive_info,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the orchestrator.

        Args:
            client: Backend used to create, poll, read and delete jobs
            time_zone: Time zone sent with the job and used for default bounds
            poll_interval: Seconds to wait between status checks
            max_wait: Seconds to wait for the job to finish before giving up
            mask: Text masking function applied to ``_raw``/``response`` fields
            sleep: Coroutine used to wait between status checks
            clock: Monotonic clock used for the wait deadline
        """
        self.client = client
        self.time_zone = time_zone
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.mask = mask
        self._sleep = sleep
        self._clock = clock

    async def run(
        self,
        query: str,
        time_range: Optional[Mapping[str, Optional[str]]] = None
    ) -> SearchOutcome:
        """Run a search to completion.

        Args:
            query: Sumo Logic query
            time_range: Optional mapping with ``from`` and/or ``to`` bounds

        Returns:
            ``SearchSuccess`` with sanitized messages (and records when the
            job produced any), or ``SearchFailure`` naming the failed stage
        """
        log = logger.bind(query=_query_preview(query))

        from_time, to_time = TimeParser.resolve_time_range(time_range, self.time_zone)
        job_params = {
            "query": query,
            "from": from_time,
            "to": to_time,
            "timeZone": self.time_zone,
        }

        try:
            job = await self.client.create_search_job(job_params)
            job_id = job.get("id") if isinstance(job, Mapping) else None
            if not job_id:
                raise SearchError("Search job ID not returned from API", query=query)
        except Exception as e:
            log.error("Search job submission failed", error=str(e), error_type=type(e).__name__)
            return SearchFailure(
                kind=FailureKind.SUBMISSION,
                message=str(e),
                error_type=type(e).__name__
            )

        log = log.bind(job_id=job_id)
        log.info("Search job submitted", from_time=from_time, to_time=to_time)

        failure: Optional[SearchFailure] = None
        messages: List[Any] = []
        records: Optional[List[Any]] = None
        try:
            try:
                status = await self._wait_for_completion(job_id)
            except Exception as e:
                # Request timeouts from the status call are polling failures
                if isinstance(e, TimeoutError) and e.operation == WAIT_OPERATION:
                    log.error("Search job did not finish in time", max_wait=self.max_wait)
                    kind = FailureKind.TIMEOUT
                else:
                    log.error("Search job polling failed", error=str(e), error_type=type(e).__name__)
                    kind = FailureKind.POLLING
                failure = SearchFailure(kind=kind, message=str(e), job_id=job_id, error_type=type(e).__name__)

            if failure is None:
                try:
                    messages_payload, records_payload = await self._fetch_results(job_id, status)
                    messages = _result_items(messages_payload, "messages")
                    if records_payload is not None:
                        records = _result_items(records_payload, "records")
                except Exception as e:
                    log.error("Search result retrieval failed", error=str(e), error_type=type(e).__name__)
                    failure = SearchFailure(
                        kind=FailureKind.FETCH, message=str(e), job_id=job_id, error_type=type(e).__name__
                    )
        finally:
            cleanup = await self.cleanup(job_id)

        if failure is not None:
            failure.cleanup = cleanup
            return failure

        result = SearchResult(messages=sanitize_items(messages, self.mask))
        if records is not None:
            result.records = sanitize_items(records, self.mask)

        log.info(
            "Search completed",
            message_count=len(result.messages),
            record_count=len(result.records) if result.records is not None else 0
        )
        return SearchSuccess(result=result, job_id=job_id, cleanup=cleanup)

    async def _wait_for_completion(self, job_id: str) -> SearchJobStatus:
        """Poll the job until it is done gathering results.

        Raises:
            TimeoutError: If the job is still running after ``max_wait`` seconds
            SearchError: If the job was cancelled or force paused
        """
        deadline = self._clock() + self.max_wait
        attempts = 0
        while True:
            attempts += 1
            payload = await self.client.get_search_job_status(job_id)
            status = SearchJobStatus.from_api(job_id, payload)

            if status.is_done:
                logger.debug(
                    "Search job done",
                    job_id=job_id,
                    attempts=attempts,
                    message_count=status.message_count,
                    record_count=status.record_count
                )
                return status

            if status.is_abandoned:
                raise SearchError(
                    f"Search job {job_id} was {status.state.lower()}",
                    job_id=job_id,
                    search_state=status.state
                )

            if self._clock() >= deadline:
                raise TimeoutError(
                    f"Search job {job_id} did not finish within {self.max_wait} seconds",
                    timeout_seconds=self.max_wait,
                    operation=WAIT_OPERATION,
                    context={"job_id": job_id, "state": status.state, "attempts": attempts}
                )

            await self._sleep(self.poll_interval)

    async def _fetch_results(self, job_id: str, status: SearchJobStatus) -> Tuple[Any, Any]:
        """Fetch messages, plus records when the job reported any, concurrently.

        If either fetch fails the other is cancelled and awaited before the
        error propagates, so nothing is still reading the job at cleanup.
        """
        if status.record_count == 0:
            return await self.client.get_messages(job_id), None

        fetches = [
            asyncio.ensure_future(self.client.get_messages(job_id)),
            asyncio.ensure_future(self.client.get_records(job_id)),
        ]
        try:
            messages, records = await asyncio.gather(*fetches)
        except BaseException:
            for fetch in fetches:
                fetch.cancel()
            await asyncio.gather(*fetches, return_exceptions=True)
            raise
        return messages, records

    async def cleanup(self, job_id: str) -> CleanupOutcome:
        """Delete the job; failures are logged and never raised."""
        try:
            await self.client.delete_search_job(job_id)
        except Exception as e:
            logger.warning(
                "Search job cleanup failed",
                job_id=job_id,
                error=str(e),
                error_type=type(e).__name__
            )
            return CleanupOutcome(job_id=job_id, deleted=False, error=str(e))
        return CleanupOutcome(job_id=job_id, deleted=True)


async def search(
    client: SearchBackend,
    query: str,
    time_range: Optional[Mapping[str, Optional[str]]] = None,
    **options: Any
) -> SearchResult:
    """Run a search and return sanitized results, never raising.

    Any failure (submission, polling, timeout, retrieval) yields an empty
    ``SearchResult`` with no records. Use ``SearchOrchestrator.run`` to tell
    an empty result apart from a failed search.

    Args:
        client: Search backend
        query: Sumo Logic query
        time_range: Optional mapping with ``from`` and/or ``to`` bounds
        **options: Extra ``SearchOrchestrator`` arguments

    Returns:
        Sanitized search result
    """
    try:
        outcome = await SearchOrchestrator(client, **options).run(query, time_range)
    except Exception as e:
        logger.error("Unexpected search failure", error=str(e), error_type=type(e).__name__)
        return SearchResult(messages=[])

    if isinstance(outcome, SearchSuccess):
        return outcome.result
    return SearchResult(messages=[])
