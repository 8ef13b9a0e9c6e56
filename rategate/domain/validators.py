from __future__ import annotations

from .errors import InvalidArgumentError


def require_key(key: object) -> str:
    if not isinstance(key, str) or not key.strip():
        raise InvalidArgumentError(f"Rate limit key must be a non-empty string, got {key!r}")
    return key


def require_positive_int(name: str, value: object) -> int:
    # bool is an int subclass; True must not pass as limit=1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be > 0, got {value}")
    return value
