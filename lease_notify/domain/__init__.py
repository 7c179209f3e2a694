"""Pure dispatch types."""

from lease_notify.domain.types import (
    DispatchRunResult,
    DispatchStats,
    Obligation,
    ObligationOutcome,
    ObligationStatus,
)

__all__ = [
    "DispatchRunResult",
    "DispatchStats",
    "Obligation",
    "ObligationOutcome",
    "ObligationStatus",
]
