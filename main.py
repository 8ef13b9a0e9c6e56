import asyncio

import uvloop
from aiohttp import web
from loguru import logger

from rategate.config import get_settings
from rategate.di import Container
from rategate.logging_setup import setup_logging
from rategate.presentation.web import create_web_app


def main():
    uvloop.install()
    settings = get_settings()
    setup_logging(level=settings.log_level)

    logger.info("Starting rate limiter on {}:{}", settings.webapp_host, settings.webapp_port)

    async def _run():
        container = Container.build(settings)
        app = create_web_app(container)
        for action, policy in container.get("policy_table").items():
            logger.info("policy {}: {} per {} ms", action.value, policy.limit, policy.window_ms)

        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, host=settings.webapp_host, port=settings.webapp_port)
        await site.start()
        logger.info("App started")
        try:
            # Block until cancelled (Ctrl+C / SIGTERM)
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()
            logger.info("App stopped")

    asyncio.run(_run())


if __name__ == "__main__":
    main()
