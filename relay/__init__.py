# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from relay.logging import logger
from relay.managers.broadcast_hub import BroadcastHub
from relay.routing import collect_subrouters
from relay.settings import app_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Nothing needs to be initialized before serving; on shutdown the number
    of participants still registered is logged. Their read loops are ended by
    the server closing the sockets.
    """
    logger.info(
        f"Chat relay running on http://{app_settings.HOST}:{app_settings.PORT}"
    )
    yield
    participants = await app.state.hub.participants()
    logger.info(
        f"Application shutdown with {len(participants)} participant(s) connected"
    )


def application(hub: BroadcastHub | None = None) -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    This function:
    - Creates the broadcast hub shared by every connection of this
      application and stores it on `app.state.hub`
    - Includes the routers collected by `relay.routing.collect_subrouters()`
      (`/health`, `/metrics` and the `/ws` chat endpoint)
    - Mounts the browser frontend from `STATIC_DIR` at `/` when that
      directory exists

    Args:
        hub: Hub to use instead of a new one.

    Returns:
        The configured FastAPI application.
    """
    app = FastAPI(
        title="Chat relay",
        description="Real-time chat relay over WebSocket",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.hub = hub if hub is not None else BroadcastHub()

    app.include_router(collect_subrouters())

    # Mounted last so the routes above take precedence over static files
    if app_settings.STATIC_DIR and os.path.isdir(app_settings.STATIC_DIR):
        app.mount(
            "/",
            StaticFiles(directory=app_settings.STATIC_DIR, html=True),
            name="static",
        )
        logger.info(f"Serving frontend from {app_settings.STATIC_DIR}")

    return app


app = application()  # Need for fastapi cli
