"""Point-of-interest sync pass: provider search -> venue store (+ photo mirror).

One pass walks every search configuration in order, follows result pages up
to ``max_pages``, upserts each place once (first sighting wins) and mirrors
its primary photo. Calls are paced so the provider's per-second quota is
never exceeded. Upserts are idempotent, so a rerun after an abort simply
picks up where the previous pass stopped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from discovery_core.adapters.places.base import AbstractPlacesClient
from discovery_core.adapters.storage.base import AbstractVenueStore
from discovery_core.core.config import SyncSettings
from discovery_core.core.errors import AppError, SyncAppError, ValidationAppError
from discovery_core.core.sync_config import TULUM_SEARCHES
from discovery_core.schemas.sync import SearchSummary, SyncReport
from discovery_core.schemas.venue import GeoPoint, SearchConfig
from discovery_core.services.photo_cache import PhotoCache, PhotoCacheOutcome
from discovery_core.services.scheduler import PacedStep, SequentialScheduler, Sleep
from discovery_core.services.venue_normalizer import place_to_venue, primary_photo_reference

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SyncPacing:
    """Delays (seconds) and page cap applied during a pass."""

    photo_delay_seconds: float = 0.35
    page_delay_seconds: float = 2.0
    search_delay_seconds: float = 1.2
    max_pages: int = 3

    def __post_init__(self) -> None:
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if min(self.photo_delay_seconds, self.page_delay_seconds, self.search_delay_seconds) < 0:
            raise ValueError("delays must be >= 0")

    @classmethod
    def from_settings(cls, cfg: SyncSettings) -> "SyncPacing":
        return cls(
            photo_delay_seconds=cfg.photo_delay_seconds,
            page_delay_seconds=cfg.page_delay_seconds,
            search_delay_seconds=cfg.search_delay_seconds,
            max_pages=cfg.max_pages,
        )


@dataclass
class _PassState:
    report: SyncReport
    scheduler: SequentialScheduler
    synced_at: datetime
    started: float
    seen: set[str] = field(default_factory=set)


class POISyncPipeline:
    """Ingest venues from the places provider into the venue store.

    Attributes:
        searches: Ordered search configurations walked by each pass.
        center: Search center shared by all configurations.
        radius: Search radius in meters.
        pacing: Delays and page cap.
    """

    def __init__(
        self,
        places: AbstractPlacesClient,
        venues: AbstractVenueStore,
        photo_cache: PhotoCache,
        *,
        center: GeoPoint,
        radius: int,
        searches: Sequence[SearchConfig] = TULUM_SEARCHES,
        pacing: SyncPacing | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.places = places
        self.venues = venues
        self.photo_cache = photo_cache
        self.center = center
        self.radius = radius
        self.searches = tuple(searches)
        self.pacing = pacing or SyncPacing()
        self._sleep = sleep
        self._clock = clock

    async def run_pass(self) -> SyncReport:
        """Run one full pass over all search configurations.

        Returns:
            Aggregate counters for the pass.

        Raises:
            SyncAppError: If a search request fails. The error carries the
                partial report; everything upserted before it stays committed.
        """
        state = _PassState(
            report=SyncReport(searches_total=len(self.searches)),
            scheduler=SequentialScheduler(sleep=self._sleep),
            synced_at=self._clock(),
            started=time.monotonic(),
        )
        logger.info(
            "sync.pass_started",
            extra={"searches": len(self.searches), "max_pages": self.pacing.max_pages},
        )

        for search in self.searches:
            summary = SearchSummary(label=search.label)
            state.report.searches.append(summary)
            state.scheduler.add(
                self._page_step(state, search, summary, page_number=1, page_token=None,
                                delay_before=self.pacing.search_delay_seconds)
            )

        await state.scheduler.run()

        report = state.report
        report.duration_seconds = round(time.monotonic() - state.started, 3)
        logger.info("sync.pass_completed", extra=report.model_dump(exclude={"searches"}))
        return report

    def _page_step(
        self,
        state: _PassState,
        search: SearchConfig,
        summary: SearchSummary,
        *,
        page_number: int,
        page_token: str | None,
        delay_before: float,
    ) -> PacedStep:
        async def run() -> None:
            try:
                page = await self.places.search(
                    self.center,
                    self.radius,
                    keyword=search.keyword,
                    place_type=search.place_type,
                    page_token=page_token,
                )
            except AppError as exc:
                raise self._abort(state, search, exc) from exc

            summary.pages += 1
            summary.results += len(page.results)
            logger.info(
                "sync.page_fetched",
                extra={"search": search.label, "page": page_number, "results": len(page.results)},
            )

            for raw in page.results:
                await self._process_result(state, summary, raw)

            if page.next_page_token and page_number < self.pacing.max_pages:
                state.scheduler.enqueue_next(
                    self._page_step(state, search, summary, page_number=page_number + 1,
                                    page_token=page.next_page_token,
                                    delay_before=self.pacing.page_delay_seconds)
                )
            else:
                state.report.searches_completed += 1

        return PacedStep(name=f"{search.label}#{page_number}", run=run, delay_before=delay_before)

    async def _process_result(self, state: _PassState, summary: SearchSummary, raw: dict[str, Any]) -> None:
        report = state.report
        place_id = raw.get("place_id") if isinstance(raw, dict) else None
        if not isinstance(place_id, str):
            place_id = None
        if place_id and place_id in state.seen:
            report.duplicates += 1
            summary.duplicates += 1
            return
        if place_id:
            state.seen.add(place_id)

        try:
            venue = place_to_venue(raw if isinstance(raw, dict) else {}, state.synced_at)
        except ValidationAppError as exc:
            report.skipped += 1
            logger.debug("sync.result_skipped", extra={"error_code": exc.code, "place_id": place_id})
            return

        try:
            await self.venues.upsert_venue(venue)
        except AppError as exc:
            report.failed += 1
            logger.error(
                "sync.upsert_failed",
                extra={"place_id": venue.place_id, "error_code": exc.code, "error": exc.message},
            )
            return
        report.upserted += 1
        summary.upserted += 1

        photo_reference = primary_photo_reference(raw)
        outcome = await self.photo_cache.cache_if_needed(venue.place_id, photo_reference)
        if outcome is PhotoCacheOutcome.CACHED:
            report.photos_cached += 1
        elif outcome is PhotoCacheOutcome.FAILED:
            report.photo_failures += 1
        else:
            report.photos_skipped += 1

        if photo_reference:
            await state.scheduler.pause(self.pacing.photo_delay_seconds)

    def _abort(self, state: _PassState, search: SearchConfig, exc: AppError) -> SyncAppError:
        report = state.report
        report.aborted = True
        report.duration_seconds = round(time.monotonic() - state.started, 3)
        logger.error(
            "sync.pass_aborted",
            extra={
                "search": search.label,
                "error_code": exc.code,
                "error": exc.message,
                "upserted": report.upserted,
                "searches_completed": report.searches_completed,
            },
        )
        return SyncAppError(
            code="sync_aborted",
            message=f"Sync aborted while searching '{search.label}': {exc.message}",
            details={"search": search.label, "provider_status": exc.code},
            report=report,
        )
