"""
Async client for the donation tracker search API.
Fetches the run list of an event with retry logic and turns it into a Snapshot.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .models import Run, Snapshot
from utilities.config import config
from utilities.logger import PollLogger


class TrackerFetchError(Exception):
    """Raised when the schedule could not be fetched or parsed."""


class TrackerClient:
    """
    Fetches speedrun records from the tracker search endpoint.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Search endpoint URL (defaults to TRACKER_URL)
            timeout: Request timeout in seconds
            retry_attempts: Retries after the first failed attempt
            retry_delay: Base delay for exponential backoff
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url or config.tracker_url
        self.retry_attempts = config.retry_attempts if retry_attempts is None else retry_attempts
        self.retry_delay = config.retry_delay if retry_delay is None else retry_delay
        self.poll_logger = PollLogger("tracker_client")

        self.client_config = {
            "timeout": timeout or config.request_timeout,
            "headers": config.get_headers(),
            "follow_redirects": True,
        }
        if transport is not None:
            self.client_config["transport"] = transport

    def build_params(self, event_id: int) -> Dict[str, str]:
        """Query parameters selecting the runs of one event."""
        return {"type": "run", "event": str(event_id)}

    async def fetch_runs(self, event_id: int) -> List[Run]:
        """
        Fetch and parse all runs of an event.

        Args:
            event_id: Tracker event identifier

        Returns:
            Runs in the order the tracker returned them

        Raises:
            TrackerFetchError: On transport failure or an unusable payload
        """
        start_time = datetime.utcnow()
        self.poll_logger.bind_context(operation="fetch_runs", event_id=event_id)
        self.poll_logger.log_poll_start(self.base_url)

        try:
            async with httpx.AsyncClient(**self.client_config) as client:
                response = await self._make_request_with_retry(client, self.build_params(event_id))

            try:
                payload = response.json()
            except ValueError as e:
                raise TrackerFetchError(f"Tracker returned invalid JSON: {e}") from e

            runs = self._parse_runs(payload)

            duration = (datetime.utcnow() - start_time).total_seconds()
            self.poll_logger.log_poll_complete(len(runs), duration)
            return runs
        finally:
            self.poll_logger.clear_context()

    async def fetch_snapshot(self, event_id: int, event_name: str) -> Snapshot:
        """
        Fetch the current schedule of an event as a Snapshot.

        Duplicate pks are rejected here so they never reach the diff engine.
        """
        runs = await self.fetch_runs(event_id)
        try:
            return Snapshot(event=event_name, runs=runs)
        except ValidationError as e:
            self.poll_logger.log_error(f"Invalid schedule: {e}", url=self.base_url)
            raise TrackerFetchError(f"Invalid schedule for {event_name}: {e}") from e

    def _parse_runs(self, payload: Any) -> List[Run]:
        """Validate the decoded JSON payload into Run models."""
        if not isinstance(payload, list):
            raise TrackerFetchError(
                f"Expected a list of runs, got {type(payload).__name__}"
            )

        runs = []
        for item in payload:
            try:
                runs.append(Run.model_validate(item))
            except ValidationError as e:
                pk = item.get("pk") if isinstance(item, dict) else None
                raise TrackerFetchError(f"Malformed run record (pk={pk}): {e}") from e
        return runs

    async def _make_request_with_retry(self, client: httpx.AsyncClient, params: Dict[str, str]) -> httpx.Response:
        """
        Make HTTP request with retry logic and exponential backoff.

        Args:
            client: HTTP client instance
            params: Query parameters

        Returns:
            HTTP response
        """
        last_exception = None

        for attempt in range(self.retry_attempts + 1):
            try:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                return response

            except httpx.HTTPError as e:
                last_exception = e

                if attempt < self.retry_attempts:
                    delay = self.retry_delay * (2 ** attempt)
                    self.poll_logger.log_retry(self.base_url, attempt + 1, self.retry_attempts, delay)
                    await asyncio.sleep(delay)
                else:
                    self.poll_logger.log_error(
                        f"Request failed after {self.retry_attempts} retries: {e}",
                        url=self.base_url,
                        retry_count=self.retry_attempts
                    )

        raise TrackerFetchError(f"Failed to fetch {self.base_url}: {last_exception}") from last_exception
