from __future__ import annotations

from .errors import DomainError, ErrorKind, InvalidArgumentError, UnknownPolicyError
from .models import Action, Policy, QuotaState
from .policies import DEFAULT_POLICIES, PolicyTable, parse_action, storage_key

__all__ = [
    "Action",
    "Policy",
    "QuotaState",
    "DEFAULT_POLICIES",
    "PolicyTable",
    "parse_action",
    "storage_key",
    "DomainError",
    "ErrorKind",
    "InvalidArgumentError",
    "UnknownPolicyError",
]
