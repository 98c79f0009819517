"""Unit tests for the local server entry point."""

import logging
from unittest.mock import patch

import pytest

from relay import __version__
from relay_api.main import app, run_server


class TestRunServer:
    def test_logs_startup_and_serves_app(self, caplog: pytest.LogCaptureFixture):
        with patch("uvicorn.run") as mock_run:
            with caplog.at_level(logging.INFO, logger="relay_api.main"):
                run_server(host="127.0.0.1", port=9000)

        mock_run.assert_called_once_with(app, host="127.0.0.1", port=9000)
        assert f"Starting Checkout Relay {__version__} on 127.0.0.1:9000" in caplog.text

    def test_reload_uses_import_string(self):
        with patch("uvicorn.run") as mock_run:
            run_server(reload=True)

        mock_run.assert_called_once_with("relay_api.main:app", host="0.0.0.0", port=8080, reload=True)
