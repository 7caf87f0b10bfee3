"""
Unit tests for logging configuration.

Tests the text renderer, service and request context processors, the
request logging middleware and HTTP error logging.
"""

import logging
from unittest.mock import MagicMock, patch

import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from services.common.logging_config import (
    RequestContextFilter,
    TextRenderer,
    add_request_context,
    add_service_context,
    create_request_logging_middleware,
    get_logger,
    log_http_error,
    request_id_var,
    setup_service_logging,
    viewer_id_var,
)


class TestLoggingConfiguration:
    def setup_method(self):
        request_id_var.set("uninitialized")
        viewer_id_var.set("anonymous")
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    def test_add_request_context(self):
        request_id_var.set("test-request-123")
        viewer_id_var.set("visitor-7")
        result = add_request_context(MagicMock(), "info", {"event": "test message"})
        assert result["request_id"] == "test-request-123"
        assert result["viewer_id"] == "visitor-7"

    def test_add_request_context_no_context(self):
        result = add_request_context(MagicMock(), "info", {"event": "test message"})
        assert "request_id" not in result
        assert "viewer_id" not in result

    def test_add_service_context(self):
        result = add_service_context(
            MagicMock(), "info", {"event": "x", "logger": "services.meeting_board.api.board"}
        )
        assert result["service"] == "meeting_board"

    def test_add_service_context_other_logger(self):
        result = add_service_context(MagicMock(), "info", {"event": "x", "logger": "uvicorn"})
        assert "service" not in result

    def test_request_context_filter(self):
        request_id_var.set("abc-1234")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestContextFilter().filter(record) is True
        assert record.request_id == "abc-1234"
        assert record.viewer_id == "anonymous"

    def test_text_renderer(self):
        renderer = TextRenderer("meeting-board")
        line = renderer(
            MagicMock(),
            "info",
            {
                "timestamp": "2024-01-25T09:00:00",
                "level": "info",
                "logger": "services.meeting_board.services.layout",
                "event": "Built layout",
                "request_id": "req-abcd1234",
                "viewer_id": "7",
                "block_count": 3,
            },
        )
        assert "[meeting-board]" in line
        assert "[INFO]" in line
        assert "[1234]" in line
        assert "meeting_board.services.layout - Built layout" in line
        assert "viewer=7" in line
        assert "block_count=3" in line

    def test_setup_service_logging_text(self):
        setup_service_logging("meeting-board", log_level="DEBUG", log_format="text")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        get_logger("services.meeting_board.test").info("configured")

    def test_log_http_error_level_follows_status(self):
        logger = MagicMock()
        with patch("services.common.logging_config.get_logger", return_value=logger):
            log_http_error("provider_error", "Upstream failed", 502, request_id="r1")
            log_http_error("validation_error", "Bad input", 422)
        assert logger.error.call_count == 1
        assert logger.error.call_args.kwargs["request_id"] == "r1"
        assert logger.warning.call_count == 1


class TestRequestLoggingMiddleware:
    def setup_method(self):
        app = FastAPI()
        app.middleware("http")(create_request_logging_middleware())

        @app.get("/whoami")
        async def whoami():
            return {"request_id": request_id_var.get(), "viewer_id": viewer_id_var.get()}

        self.client = TestClient(app)

    def test_request_id_and_viewer_from_headers(self):
        resp = self.client.get(
            "/whoami", headers={"X-Request-Id": "req-1", "X-Viewer-Id": "visitor-7"}
        )
        assert resp.headers["X-Request-Id"] == "req-1"
        assert resp.json() == {"request_id": "req-1", "viewer_id": "visitor-7"}

    def test_request_id_generated_when_missing(self):
        resp = self.client.get("/whoami", params={"viewer_id": "42"})
        body = resp.json()
        assert body["request_id"] not in ("", "uninitialized")
        assert resp.headers["X-Request-Id"] == body["request_id"]
        assert body["viewer_id"] == "42"
