"""Pydantic schemas describing the outcome of a sync pass."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchSummary(BaseModel):
    """Per search configuration counters."""

    label: str
    pages: int = 0
    results: int = 0
    upserted: int = 0
    duplicates: int = 0


class SyncReport(BaseModel):
    """Aggregate counters for one pass over all search configurations."""

    upserted: int = Field(0, description="Venue records upserted in this pass.")
    skipped: int = Field(0, description="Malformed provider results skipped.")
    failed: int = Field(0, description="Results whose upsert was rejected by storage.")
    duplicates: int = Field(0, description="Results already processed earlier in this pass.")
    photos_cached: int = 0
    photos_skipped: int = 0
    photo_failures: int = 0
    searches_completed: int = 0
    searches_total: int = 0
    aborted: bool = False
    duration_seconds: float = 0.0
    searches: list[SearchSummary] = Field(default_factory=list)
