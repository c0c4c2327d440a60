"""Application-level exception types.

Domain errors shared by adapters, services and the HTTP layer so failures
are logged and rendered consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

if TYPE_CHECKING:
    from discovery_core.schemas.sync import SyncReport


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    provider_status: str
    place_id: str
    search: str
    retry_after: float
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class PlacesAppError(AppError):
    """Raised when the upstream places provider fails or rejects a call."""


class StorageAppError(AppError):
    """Raised when the record store or blob store rejects an operation."""


@dataclass
class SyncAppError(AppError):
    """Raised when a sync pass aborts; carries the progress made before the abort."""

    report: SyncReport | None = None
