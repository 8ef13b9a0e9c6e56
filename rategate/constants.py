from __future__ import annotations


APP_NAME: str = "rategate"

MSG_RATE_LIMITED: str = "Too many requests. Try again later."
ADMIN_TOKEN_HEADER: str = "X-Admin-Token"
