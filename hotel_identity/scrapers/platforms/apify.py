"""
Apify actor runner.

Starts an actor run, polls it to a terminal state and returns the dataset
items. Used to re-scrape a stored listing URL.
"""
import asyncio
from typing import Any, Dict, List, Optional

from ...utils.polling import poll_until
from ..base.errors import UpstreamUnavailableError
from ..base.source_adapter import HttpSourceAdapter

APIFY_BASE_URL = "https://api.apify.com/v2"

TERMINAL_FAILURES = ('FAILED', 'ABORTED', 'TIMED-OUT')


class ApifyRunFailed(UpstreamUnavailableError):
    """Actor run ended in a failure state"""


class ApifyActorRunner:
    """Runs Apify actors through an adapter's rate-limited HTTP session."""

    def __init__(
        self,
        adapter: HttpSourceAdapter,
        api_token: str,
        poll_interval: float = 4.0,
        poll_timeout: float = 150.0,
    ):
        self.adapter = adapter
        self.api_token = api_token
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout

    async def _run_status(self, run_id: str) -> Dict[str, Any]:
        data = await self.adapter._request_json(
            'GET',
            f"{APIFY_BASE_URL}/actor-runs/{run_id}",
            params={'token': self.api_token},
        )
        run = (data or {}).get('data') or {}
        status = run.get('status')
        if status in TERMINAL_FAILURES:
            raise ApifyRunFailed(f"Apify run {run_id} {status}")
        return run

    async def run(
        self,
        actor_id: str,
        run_input: Dict[str, Any],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Dict[str, Any]]:
        """
        Start ``actor_id`` with ``run_input`` and wait for its dataset.

        Raises:
            ApifyRunFailed: run ended FAILED, ABORTED or TIMED-OUT
            PollTimeoutError: run did not finish within poll_timeout
        """
        started = await self.adapter._request_json(
            'POST',
            f"{APIFY_BASE_URL}/acts/{actor_id}/runs",
            params={'token': self.api_token},
            json_body=run_input,
        )
        run_id = ((started or {}).get('data') or {}).get('id')
        if not run_id:
            raise UpstreamUnavailableError(f"Apify actor {actor_id} did not return a run id")

        self.adapter.logger.info("apify_run_started", actor_id=actor_id, run_id=run_id)

        run = await poll_until(
            lambda: self._run_status(run_id),
            lambda state: state.get('status') == 'SUCCEEDED',
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            cancel_event=cancel_event,
        )

        items = await self.adapter._request_json(
            'GET',
            f"{APIFY_BASE_URL}/datasets/{run['defaultDatasetId']}/items",
            params={'token': self.api_token},
        )
        return items if isinstance(items, list) else []
