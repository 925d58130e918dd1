"""
HTTP surface of the monitor: a liveness probe and the Prometheus endpoint.
"""

import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from .errors import MonitorError, ServerError

if TYPE_CHECKING:
    from .config import ServerConfig
    from .metrics import MetricsExporter
    from .shutdown import ShutdownFlag

logger = logging.getLogger(__name__)


def create_app(exporter: "MetricsExporter") -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        exporter: Renders the ``/metrics`` payload

    Returns:
        Application serving ``/`` and ``/metrics``
    """
    app = FastAPI(title="FTSO Monitor", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.exporter = exporter

    @app.exception_handler(MonitorError)
    async def monitor_error_handler(request: Request, exc: MonitorError) -> PlainTextResponse:
        logger.error(f"Request to {request.url.path} failed: {exc}")
        return PlainTextResponse(f"{type(exc).__name__}: {exc}", status_code=500)

    @app.get("/")
    async def health_check(request: Request) -> Response:
        logger.info(f"Request to: {request.url.path}")
        return Response(status_code=200)

    @app.get("/metrics")
    async def get_metrics(request: Request) -> Response:
        logger.info(f"Request to: {request.url.path}")
        payload, content_type = await request.app.state.exporter.render()
        return Response(content=payload, media_type=content_type)

    return app


class MetricsServer:
    """
    Runs the FastAPI app under uvicorn inside the current event loop.

    Whenever serving ends, cleanly or not, the exporter's snapshot reader is
    closed and the shared shutdown flag is set so the scanner stops at its
    next checkpoint.
    """

    def __init__(
        self,
        app: FastAPI,
        server_config: "ServerConfig",
        shutdown_flag: "ShutdownFlag",
        log_level: str = "info",
    ) -> None:
        self.app = app
        self.host = server_config.host
        self.port = server_config.port
        self.shutdown_flag = shutdown_flag
        self.server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=self.host,
                port=self.port,
                log_level=log_level.lower(),
                # Keep uvicorn on the root handler set up in main
                log_config=None,
            )
        )

    async def serve(self) -> None:
        """
        Serve until uvicorn exits.

        Raises:
            ServerError: If the server could not bind its socket
        """
        logger.info(f"Starting metrics server on {self.host}:{self.port}")
        try:
            await self.server.serve()
        except SystemExit as e:
            # uvicorn exits the process when binding fails
            raise ServerError(
                f"Metrics server failed to start on {self.host}:{self.port}"
            ) from e
        finally:
            self.app.state.exporter.close()
            self.shutdown_flag.set("metrics server stopped")
        logger.info("Metrics server stopped gracefully...")

    def stop(self) -> None:
        """Ask uvicorn to exit its serve loop."""
        self.server.should_exit = True
