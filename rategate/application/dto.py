from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rategate.domain.errors import ErrorKind
from rategate.domain.models import Action


@dataclass(frozen=True, slots=True)
class AdmissionResultDTO:
    allowed: bool
    action: Action | None
    key: str | None
    remaining: int
    reset_time_ms: int
    error: ErrorKind | None = None
    message: str = ""


@dataclass(frozen=True, slots=True)
class RateLimitInfoDTO:
    """Quota record for one (subject, action); reset_at is None only on error."""
    limit: int
    remaining: int
    reset_time_ms: int
    reset_at: datetime | None
    error: ErrorKind | None = None
    message: str = ""


@dataclass(frozen=True, slots=True)
class ResetResultDTO:
    reset: bool
    error: ErrorKind | None = None
    message: str = ""


@dataclass(frozen=True, slots=True)
class ActionCountersDTO:
    allowed: int = 0
    denied: int = 0


@dataclass(frozen=True, slots=True)
class RateLimitStatsDTO:
    tracked_keys: int
    tracked_timestamps: int
    per_action: dict[Action, ActionCountersDTO] = field(default_factory=dict)
    blocked_ratio: float = 0.0
    # most-denied storage keys, highest first
    top_subjects: list[tuple[str, int]] = field(default_factory=list)
