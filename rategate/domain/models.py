from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .validators import require_positive_int


class Action(str, Enum):
    NOTE_WRITE = "note_write"
    COMMENT_WRITE = "comment_write"
    IMAGE_UPLOAD = "image_upload"
    SEARCH = "search"
    PROFILE_UPDATE = "profile_update"
    LOGIN_ATTEMPT = "login_attempt"


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Quota for one action: at most `limit` admissions per sliding `window_ms`.
    """
    limit: int
    window_ms: int

    def __post_init__(self) -> None:
        require_positive_int("limit", self.limit)
        require_positive_int("window_ms", self.window_ms)


@dataclass(frozen=True, slots=True)
class QuotaState:
    limit: int
    remaining: int
    reset_time_ms: int
