"""Tests for main entry point."""

from unittest.mock import MagicMock, patch

from safe_exec.config import Settings


class TestMain:
    """Tests for __main__ module."""

    def test_runs_with_http_transport_by_default(self) -> None:
        """Server runs with HTTP transport by default."""
        mock_mcp = MagicMock()
        settings = Settings(http_host="0.0.0.0", http_port=9000)

        with patch("safe_exec.__main__.mcp", mock_mcp), \
             patch("safe_exec.__main__.get_settings", return_value=settings):
            from safe_exec.__main__ import run_server
            run_server()

        mock_mcp.run.assert_called_once_with(
            transport="http",
            host="0.0.0.0",
            port=9000,
        )

    def test_runs_with_stdio_when_configured(self) -> None:
        """Server runs with STDIO transport when configured."""
        mock_mcp = MagicMock()
        settings = Settings(transport="stdio")

        with patch("safe_exec.__main__.mcp", mock_mcp), \
             patch("safe_exec.__main__.get_settings", return_value=settings):
            from safe_exec.__main__ import run_server
            run_server()

        mock_mcp.run.assert_called_once_with(transport="stdio")
