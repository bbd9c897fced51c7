"""
smartreceipt/main.py

Purpose: Application entry point

- Builds the FastAPI app and wires the routers
- Startup: validate config, connect MongoDB, ensure indexes, register channels,
  start Telegram long-polling
- Shutdown: stop polling, release the render service client and the Mongo connection
- No business logic should be written here
"""

from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
import time
from typing import Optional

from smartreceipt.core.config import settings, validate_settings
from smartreceipt.core.errors import add_exception_handlers
from smartreceipt.core.logging import setup_logging, get_logger
from smartreceipt.db.mongo import connect_to_mongo, close_mongo_connection
from smartreceipt.db.indexes import create_indexes
from smartreceipt.channels.base import channel_router
from smartreceipt.channels.telegram import TelegramChannel
from smartreceipt.channels.polling import TelegramPoller
from smartreceipt.services.renderer import RemoteBrowserRenderer, get_renderer
from smartreceipt.api import health, payment

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 5.0


def register_channels() -> Optional[TelegramChannel]:
    telegram = TelegramChannel()
    if not telegram.is_configured():
        logger.warning("⚠️ TELEGRAM_BOT_TOKEN not set, Telegram channel disabled")
        return None
    channel_router.register(telegram)
    return telegram


async def startup() -> Optional[TelegramPoller]:
    validate_settings()
    logger.info("✅ Configuration validated")

    await connect_to_mongo()
    await create_indexes()
    logger.info("✅ MongoDB ready")

    telegram = register_channels()
    if telegram is None or not settings.TELEGRAM_POLLING:
        return None

    poller = TelegramPoller(telegram, channel_router)
    poller.start()
    return poller


async def shutdown(poller: Optional[TelegramPoller] = None) -> None:
    if poller is not None:
        await poller.stop()

    renderer = get_renderer()
    if isinstance(renderer, RemoteBrowserRenderer):
        await renderer.shutdown()
    await close_mongo_connection()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting SmartReceipt ({settings.ENVIRONMENT})...")
    try:
        poller = await startup()
    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise
    logger.info("🎉 SmartReceipt started")

    yield

    logger.info("🛑 Shutting down SmartReceipt...")
    try:
        await shutdown(poller)
        logger.info("👋 SmartReceipt shut down")
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="SmartReceipt",
    description="Chat-based receipt generator",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

add_exception_handlers(app)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > SLOW_REQUEST_SECONDS:
        logger.warning(
            f"Slow request: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )
    return response


app.include_router(health.router, tags=["Health"])
app.include_router(payment.router, prefix=settings.API_PREFIX, tags=["Payments"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "smartreceipt.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
