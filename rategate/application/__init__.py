from __future__ import annotations

from .dto import (
    ActionCountersDTO,
    AdmissionResultDTO,
    RateLimitInfoDTO,
    RateLimitStatsDTO,
    ResetResultDTO,
)
from .services import RateLimitService

__all__ = [
    "ActionCountersDTO",
    "AdmissionResultDTO",
    "RateLimitInfoDTO",
    "RateLimitStatsDTO",
    "ResetResultDTO",
    "RateLimitService",
]
