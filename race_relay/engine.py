# race_relay/engine.py
"""
The relay loop: fetch each configured event's races, submit the ones not seen
before, persist what was submitted, and repeat on a fixed schedule.

Pairs are processed strictly one after another, and races within a pair one
at a time with a fixed delay in between. A pass never overlaps the next one.
"""

import asyncio
import time
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Awaitable
from typing import Callable
from typing import List
from typing import Optional

import httpx
import structlog

from .adapters.base import BaseAdapter
from .adapters.form_adapter import FormAdapter
from .adapters.midos_adapter import MidosAdapter
from .config import Settings
from .config import get_settings
from .core.exceptions import EventNotFoundError
from .core.exceptions import StateSaveError
from .core.exceptions import TransientFetchError
from .core.exceptions import TransientSubmitError
from .models import EventConfig
from .models import RelayConfig
from .submission import build_submission
from .tracking import TrackedSet
from .tracking import TrackingStore


class PairStatus(Enum):
    """Outcome of one (series, event) pair within a pass."""
    SUCCESS = "success"
    PARTIAL = "partial"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class PairResult:
    event_key: str
    status: PairStatus = PairStatus.SUCCESS
    submitted: int = 0
    skipped_tracked: int = 0
    skipped_unscheduled: int = 0
    skipped_past: int = 0
    failed: int = 0
    saved: bool = False
    error: Optional[str] = None


@dataclass
class PassResult:
    pairs: List[PairResult] = field(default_factory=list)
    duration_ms: float = 0.0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def submitted(self) -> int:
        return sum(pair.submitted for pair in self.pairs)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RelayEngine:
    def __init__(
        self,
        config: RelayConfig,
        settings: Optional[Settings] = None,
        store: Optional[TrackingStore] = None,
        fetcher: Optional[MidosAdapter] = None,
        submitter: Optional[FormAdapter] = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.logger = structlog.get_logger(__name__)
        self.config = config
        self.settings = settings or get_settings()
        self.clock = clock
        self.sleep = sleep

        single_event_key = config.events[0].key if len(config.events) == 1 else None
        self.store = store or TrackingStore(self.settings.STATE_PATH, single_event_key=single_event_key)

        self.fetcher = fetcher or MidosAdapter(
            api_key=config.midos_api_key,
            base_url=self.settings.MIDOS_GRAPHQL_URL,
            timeout=self.settings.HTTP_TIMEOUT,
        )
        self.submitter = submitter or FormAdapter(timeout=self.settings.HTTP_TIMEOUT)

        self.http_client = httpx.AsyncClient(headers={"User-Agent": self.settings.USER_AGENT})
        for adapter in (self.fetcher, self.submitter):
            if isinstance(adapter, BaseAdapter) and getattr(adapter, "http_client", None) is None:
                adapter.http_client = self.http_client

        self._state_loaded = False
        self._pass_in_progress = False
        self.logger.info("Relay engine initialized", events=[event.key for event in config.events])

    @property
    def pass_in_progress(self) -> bool:
        return self._pass_in_progress

    def load_state(self) -> None:
        self.store.load()
        self._state_loaded = True

    async def run_pass(self) -> Optional[PassResult]:
        """
        Runs one pass over every configured pair.

        Returns None without doing anything if another pass is still running.
        """
        if self._pass_in_progress:
            self.logger.warning("Pass already in progress; skipping trigger")
            return None

        self._pass_in_progress = True
        try:
            if not self._state_loaded:
                self.load_state()

            result = PassResult(started_at=self.clock())
            start = time.perf_counter()
            for event in self.config.events:
                tracked = self.store.tracked_set(event.key)
                pair = await self.process_event(event, tracked)
                pair.saved = self._persist(event.key)
                result.pairs.append(pair)
                await self.sleep(self.settings.EVENT_DELAY_SECONDS)

            result.duration_ms = (time.perf_counter() - start) * 1000
            self.logger.info(
                "Pass complete",
                submitted=result.submitted,
                pairs=len(result.pairs),
                duration_ms=round(result.duration_ms, 1),
            )
            return result
        finally:
            self._pass_in_progress = False

    async def process_event(self, event: EventConfig, tracked: TrackedSet) -> PairResult:
        """Fetches one pair's races and submits every future race not yet tracked."""
        log = self.logger.bind(event_key=event.key)
        result = PairResult(event_key=event.key)

        try:
            races = await self.fetcher.fetch_event_races(event.series_name, event.event_name)
        except EventNotFoundError:
            log.info("No series/event found")
            result.status = PairStatus.NOT_FOUND
            return result
        except TransientFetchError as e:
            log.error("Failed to fetch races", error=str(e), status_code=e.status_code)
            result.status = PairStatus.FAILED
            result.error = str(e)
            return result
        except Exception as e:
            log.error("Unexpected error fetching races", error=str(e), exc_info=True)
            result.status = PairStatus.FAILED
            result.error = str(e)
            return result

        for race in races:
            if race.id in tracked:
                result.skipped_tracked += 1
                continue
            if race.start is None:
                result.skipped_unscheduled += 1
                continue
            if race.start < self.clock():
                result.skipped_past += 1
                continue

            try:
                submission = build_submission(
                    race,
                    event,
                    self.config.form,
                    self.config.form_id,
                    base_url=self.settings.FORM_BASE_URL,
                )
            except Exception as e:
                # Not tracked: the same race is retried next pass
                log.error("Could not build submission", race_id=race.id, error=str(e), exc_info=True)
                result.failed += 1
                continue

            # Tracked before sending; a failed send is not retried
            tracked.add(race.id)
            try:
                await self.submitter.send(submission)
                result.submitted += 1
                log.info(
                    "Submitted race",
                    race_id=race.id,
                    matchup=submission.matchup,
                    start=submission.start,
                )
            except TransientSubmitError as e:
                result.failed += 1
                log.error("Failed to submit race", race_id=race.id, error=str(e), status_code=e.status_code)
            except Exception as e:
                result.failed += 1
                log.error("Unexpected error submitting race", race_id=race.id, error=str(e), exc_info=True)

            await self.sleep(self.settings.SUBMISSION_DELAY_SECONDS)

        if result.failed:
            result.status = PairStatus.PARTIAL
        return result

    def _persist(self, event_key: str) -> bool:
        try:
            self.store.save()
            return True
        except StateSaveError as e:
            self.logger.error(
                "Failed to persist tracked races; will retry after the next pair",
                event_key=event_key,
                path=e.path,
                error=str(e),
            )
            return False

    async def run_forever(self, max_passes: Optional[int] = None) -> None:
        """
        Runs a pass now and then every REFRESH_INTERVAL_SECONDS, measured from
        the start of each pass. An overrunning pass is followed directly by the
        next one; passes are never run concurrently.
        """
        interval = self.settings.REFRESH_INTERVAL_SECONDS
        if not self._state_loaded:
            self.load_state()

        passes = 0
        while max_passes is None or passes < max_passes:
            started = time.monotonic()
            try:
                await self.run_pass()
            except Exception as e:
                self.logger.error("Relay pass crashed", error=str(e), exc_info=True)
            passes += 1
            if max_passes is not None and passes >= max_passes:
                break

            elapsed = time.monotonic() - started
            delay = max(0.0, interval - elapsed)
            if delay == 0.0:
                self.logger.warning("Pass took longer than the refresh interval", elapsed_s=round(elapsed, 1))
            else:
                self.logger.debug("Sleeping until next pass", delay_s=round(delay, 1))
            await self.sleep(delay)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "RelayEngine":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
