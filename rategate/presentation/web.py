from __future__ import annotations

import hmac
import math
from typing import Any

from aiohttp import web
from loguru import logger

from rategate.application.dto import AdmissionResultDTO, RateLimitInfoDTO, RateLimitStatsDTO, ResetResultDTO
from rategate.application.services import RateLimitService
from rategate.constants import ADMIN_TOKEN_HEADER
from rategate.di import Container
from rategate.domain.errors import ErrorKind
from rategate.lifecycle import AppLifecycle


CONTAINER_KEY = web.AppKey("container", Container)
LIFECYCLE_KEY = web.AppKey("lifecycle", AppLifecycle)

_ERROR_STATUS = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.UNKNOWN_POLICY: 404,
}


def _error(kind: str, message: str, status: int) -> web.Response:
    return web.json_response({"error": kind, "message": message}, status=status)


def _reset_response(result: ResetResultDTO) -> web.Response:
    if result.error:
        return _error(result.error.value, result.message, _ERROR_STATUS[result.error])
    return web.Response(status=204)


def _service(request: web.Request) -> RateLimitService:
    return request.app[CONTAINER_KEY].get("rate_limit_service")


def _require_admin(request: web.Request) -> web.Response | None:
    expected = request.app[CONTAINER_KEY].settings.admin_token
    if not expected:
        return None
    given = request.headers.get(ADMIN_TOKEN_HEADER, "")
    if hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8")):
        return None
    logger.warning("Rejected admin request {} {}", request.method, request.path)
    return _error("unauthorized", "Admin token required", 401)


def info_payload(info: RateLimitInfoDTO) -> dict[str, Any]:
    return {
        "limit": info.limit,
        "remaining": info.remaining,
        "resetTimeMs": info.reset_time_ms,
        "resetAt": info.reset_at.isoformat() if info.reset_at else None,
    }


def admission_payload(result: AdmissionResultDTO) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "allowed": result.allowed,
        "action": result.action.value if result.action else None,
        "remaining": result.remaining,
        "resetTimeMs": result.reset_time_ms,
    }
    if result.message:
        payload["message"] = result.message
    if result.error:
        payload["error"] = result.error.value
    return payload


def stats_payload(stats: RateLimitStatsDTO) -> dict[str, Any]:
    return {
        "trackedKeys": stats.tracked_keys,
        "trackedTimestamps": stats.tracked_timestamps,
        "actions": {
            action.value: {"allowed": c.allowed, "denied": c.denied}
            for action, c in stats.per_action.items()
        },
        "blockedRatio": round(stats.blocked_ratio, 4),
        "topSubjects": [{"key": key, "denied": n} for key, n in stats.top_subjects],
    }


async def health(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def get_limit(request: web.Request) -> web.Response:
    info = _service(request).info(request.match_info["subject"], request.match_info["action"])
    if info.error:
        return _error(info.error.value, info.message, _ERROR_STATUS[info.error])
    return web.json_response(info_payload(info))


async def check_limit(request: web.Request) -> web.Response:
    result = _service(request).check(request.match_info["action"], request.match_info["subject"])
    if result.error:
        return web.json_response(admission_payload(result), status=_ERROR_STATUS[result.error])
    if not result.allowed:
        retry_after = max(1, math.ceil(result.reset_time_ms / 1000))
        return web.json_response(
            admission_payload(result),
            status=429,
            headers={"Retry-After": str(retry_after)},
        )
    return web.json_response(admission_payload(result))


async def reset_limit(request: web.Request) -> web.Response:
    denied = _require_admin(request)
    if denied is not None:
        return denied
    return _reset_response(_service(request).reset(request.match_info["action"], request.match_info["subject"]))


async def reset_subject(request: web.Request) -> web.Response:
    denied = _require_admin(request)
    if denied is not None:
        return denied
    return _reset_response(_service(request).reset_subject(request.match_info["subject"]))


async def reset_all(request: web.Request) -> web.Response:
    denied = _require_admin(request)
    if denied is not None:
        return denied
    _service(request).reset_all()
    logger.info("All rate limits reset via admin API")
    return web.Response(status=204)


async def get_stats(request: web.Request) -> web.Response:
    return web.json_response(stats_payload(_service(request).stats()))


async def on_startup(app: web.Application) -> None:
    await app[LIFECYCLE_KEY].startup()


async def on_shutdown(app: web.Application) -> None:
    await app[LIFECYCLE_KEY].shutdown()


def create_web_app(container: Container) -> web.Application:
    lifecycle = AppLifecycle(container=container)
    # wiring errors must surface before the server binds
    lifecycle.build()

    app = web.Application()
    app[CONTAINER_KEY] = container
    app[LIFECYCLE_KEY] = lifecycle

    app.router.add_get("/health", health)
    app.router.add_get("/stats", get_stats)
    app.router.add_delete("/limits", reset_all)
    app.router.add_delete("/limits/subjects/{subject}", reset_subject)
    app.router.add_get("/limits/{action}/{subject}", get_limit)
    app.router.add_post("/limits/{action}/{subject}/check", check_limit)
    app.router.add_delete("/limits/{action}/{subject}", reset_limit)

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)

    return app
