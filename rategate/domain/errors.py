from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    UNKNOWN_POLICY = "unknown_policy"


class DomainError(Exception):
    """Base domain error. Carries a machine-readable kind for callers."""

    kind: ErrorKind


class InvalidArgumentError(DomainError):
    kind = ErrorKind.INVALID_ARGUMENT


class UnknownPolicyError(DomainError):
    kind = ErrorKind.UNKNOWN_POLICY

    def __init__(self, name: object) -> None:
        super().__init__(f"No rate limit policy for action: {name!r}")
        self.name = name
