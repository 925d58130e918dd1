"""Unit tests for the HTTP server."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from ftso_monitor.config import ServerConfig
from ftso_monitor.errors import ChainUnavailable, RenderFailure, ServerError
from ftso_monitor.server import MetricsServer, create_app
from ftso_monitor.shutdown import ShutdownFlag


@pytest.fixture
def exporter():
    exporter = MagicMock()
    exporter.render = AsyncMock(
        return_value=(b"ftso_search_window 100.0\n", "text/plain; version=0.0.4; charset=utf-8")
    )
    return exporter


@pytest.fixture
def client(exporter):
    return TestClient(create_app(exporter))


class TestRoutes:
    """Tests for the HTTP routes."""

    def test_health_check(self, client):
        """Test that / returns an empty 200."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.content == b""

    def test_metrics(self, client, exporter):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain; version=0.0.4")
        assert response.content == b"ftso_search_window 100.0\n"
        exporter.render.assert_awaited_once()

    def test_metrics_chain_unavailable(self, client, exporter):
        """Test that a failed scrape is answered with a 500, not a crash."""
        exporter.render = AsyncMock(side_effect=ChainUnavailable("rpc down"))

        response = client.get("/metrics")

        assert response.status_code == 500
        assert "ChainUnavailable: rpc down" in response.text

    def test_metrics_render_failure(self, client, exporter):
        exporter.render = AsyncMock(side_effect=RenderFailure("bad encoding"))

        response = client.get("/metrics")

        assert response.status_code == 500
        assert "RenderFailure" in response.text

    def test_unknown_path(self, client):
        assert client.get("/nope").status_code == 404

    def test_server_keeps_serving_after_error(self, client, exporter):
        exporter.render = AsyncMock(side_effect=[ChainUnavailable("blip"), (b"", "text/plain")])

        assert client.get("/metrics").status_code == 500
        assert client.get("/metrics").status_code == 200


class TestMetricsServer:
    """Tests for the uvicorn wrapper."""

    @pytest.fixture
    def shutdown_flag(self):
        return ShutdownFlag()

    @pytest.fixture
    def server(self, exporter, shutdown_flag):
        return MetricsServer(create_app(exporter), ServerConfig(host="127.0.0.1", port=6969), shutdown_flag)

    @pytest.mark.asyncio
    async def test_clean_exit_sets_flag(self, server, shutdown_flag, exporter):
        """Test that the shutdown flag is set and the exporter closed once serving ends."""
        with patch.object(server.server, "serve", new=AsyncMock()):
            await server.serve()

        assert shutdown_flag.is_set() is True
        exporter.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_bind_failure(self, server, shutdown_flag, exporter):
        """Test that uvicorn's exit on bind failure becomes a ServerError."""
        with patch.object(server.server, "serve", new=AsyncMock(side_effect=SystemExit(1))):
            with pytest.raises(ServerError, match="failed to start on 127.0.0.1:6969"):
                await server.serve()

        assert shutdown_flag.is_set() is True
        exporter.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_unexpected_error_sets_flag(self, server, shutdown_flag):
        with patch.object(server.server, "serve", new=AsyncMock(side_effect=OSError("boom"))):
            with pytest.raises(OSError):
                await server.serve()

        assert shutdown_flag.is_set() is True

    def test_stop(self, server):
        server.stop()
        assert server.server.should_exit is True
