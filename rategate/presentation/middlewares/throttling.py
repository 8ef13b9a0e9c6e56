from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from rategate.application.services import RateLimitService
from rategate.domain.models import Action


class ThrottlingMiddleware(BaseMiddleware):
    """
    Gate bot updates by sender id under one named action.
    Denied updates are dropped; handlers see the admission result as data["rate_limit"].
    """

    def __init__(self, *, service: RateLimitService, action: Action) -> None:
        self._service = service
        self._action = action
        self._logger = logging.getLogger("tg.throttling")

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = getattr(event, "from_user", None)
        if user is None:
            return await handler(event, data)

        result = self._service.check(self._action, str(user.id))
        if not result.allowed:
            self._logger.debug("dropped %s from user %s", type(event).__name__, user.id)
            return None

        data["rate_limit"] = result
        return await handler(event, data)
