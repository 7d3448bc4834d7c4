# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from asyncio import Task, create_task, gather
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.exceptions import register_exception_handlers
from relay.logging import logger
from relay.middlewares.correlation_id import CorrelationIDMiddleware
from relay.routing import collect_subrouters
from relay.settings import app_settings
from relay.tasks.heartbeat import heartbeat_task
from relay.uptime import mark_started

tasks: list[Task] = []


def startup():
    """
    Application startup handler
    """

    async def wrapper():
        """
        Start background tasks and log the effective configuration.
        """
        logger.info("Application startup initiated")
        mark_started()
        logger.info(
            f"Listening on {app_settings.HOST}:{app_settings.PORT} "
            f"(env: {app_settings.ENV.value})"
        )
        logger.info(f"Allowed origins: {', '.join(app_settings.ALLOWED_ORIGINS)}")

        tasks.append(create_task(heartbeat_task()))
        logger.info("Created heartbeat task")

    return wrapper


def shutdown():
    """
    Application shutdown handler
    """

    async def wrapper():
        """
        Cancel background tasks and wait for them to finish.

        Uses gather() with return_exceptions=True to absorb CancelledError
        raised during cancellation.
        """
        logger.info("Application shutdown initiated")

        if tasks:
            logger.info(f"Cancelling {len(tasks)} background tasks")
            for task in tasks:
                task.cancel()
            await gather(*tasks, return_exceptions=True)
            tasks.clear()
            logger.info("All background tasks completed")

        logger.info("Application shutdown complete")

    return wrapper


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the startup handler, serve, then run the shutdown handler."""
    await startup()()
    yield
    await shutdown()()


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Routers are collected from ``relay.api.http`` and
    ``relay.api.ws.consumers``. Middlewares:
    - `CORSMiddleware`: origins from ALLOWED_ORIGINS.
    - `CorrelationIDMiddleware`: request correlation IDs for logging.
    """
    app = FastAPI(
        title="Room Relay",
        description="Real-time room message relay over WebSocket",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(collect_subrouters())
    register_exception_handlers(app)

    # Middlewares (execute in REVERSE order of registration)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(CorrelationIDMiddleware)

    return app


app = application()  # Need for fastapi cli
