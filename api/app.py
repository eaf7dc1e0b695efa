"""
FastAPI Application

Health endpoint served alongside the bootstrap process.

Usage:
    app = create_app(state)
    start_health_server(app, host="0.0.0.0", port=8081)
"""

import logging
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI

from api.errors import keyhost_error_handler, unexpected_error_handler
from api.routes import health
from core.schemas.errors import KeyhostException
from orchestrator.bootstrap import AppState


logger = logging.getLogger(__name__)


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="keyhost",
        description="Health and bootstrap status of the key host.",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.keyhost = state or AppState()

    app.add_exception_handler(KeyhostException, keyhost_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(health.router)

    return app


def start_health_server(app: FastAPI, host: str = "0.0.0.0", port: int = 8081) -> threading.Thread:
    """
    Serve the app on a daemon thread.

    The bootstrap continues on the calling thread; the server dies with
    the process.
    """
    server = uvicorn.Server(
        uvicorn.Config(app, host=host, port=port, log_level="warning")
    )

    def _run() -> None:
        try:
            server.run()
        except Exception:
            logger.exception("Error listening for health checks")

    thread = threading.Thread(target=_run, name="health-server", daemon=True)
    thread.start()
    logger.info(f"Health endpoint listening on {host}:{port}")
    return thread
