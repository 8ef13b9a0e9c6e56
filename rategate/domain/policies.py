from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping

from .errors import InvalidArgumentError, UnknownPolicyError
from .models import Action, Policy
from .validators import require_key


DEFAULT_POLICIES: Mapping[Action, Policy] = MappingProxyType(
    {
        Action.NOTE_WRITE: Policy(limit=5, window_ms=60_000),
        Action.COMMENT_WRITE: Policy(limit=10, window_ms=60_000),
        Action.IMAGE_UPLOAD: Policy(limit=3, window_ms=60_000),
        Action.SEARCH: Policy(limit=30, window_ms=60_000),
        Action.PROFILE_UPDATE: Policy(limit=3, window_ms=300_000),
        Action.LOGIN_ATTEMPT: Policy(limit=5, window_ms=300_000),
    }
)


def parse_action(name: Action | str) -> Action:
    """
    Resolve an action by enum, value ("note_write") or member name ("NOTE_WRITE").
    """
    if isinstance(name, Action):
        return name
    if isinstance(name, str):
        normalized = name.strip().lower()
        for action in Action:
            if action.value == normalized:
                return action
    raise UnknownPolicyError(name)


def storage_key(action: Action, subject: str) -> str:
    require_key(subject)
    return f"{action.value}:{subject}"


class PolicyTable:
    """
    Read-only registry of named policies, populated once at start-up.
    """

    def __init__(self, policies: Mapping[Action, Policy] = DEFAULT_POLICIES) -> None:
        missing = [a.value for a in Action if a not in policies]
        if missing:
            raise InvalidArgumentError(f"Policy table is missing actions: {missing}")
        self._policies: Mapping[Action, Policy] = MappingProxyType(dict(policies))

    @classmethod
    def with_overrides(cls, overrides: Mapping[str, Policy]) -> "PolicyTable":
        merged = dict(DEFAULT_POLICIES)
        for name, policy in overrides.items():
            merged[parse_action(name)] = policy
        return cls(merged)

    def get(self, action: Action | str) -> Policy:
        return self._policies[parse_action(action)]

    @property
    def max_window_ms(self) -> int:
        return max(p.window_ms for p in self._policies.values())

    def items(self) -> list[tuple[Action, Policy]]:
        return list(self._policies.items())

    def __iter__(self) -> Iterator[Action]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)
