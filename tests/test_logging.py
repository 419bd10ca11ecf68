"""Tests for the structlog logger factory."""

import orjson
import pytest
import structlog
from structlog.testing import capture_logs

from pushmetrics.logging import LogConfig, get_logger, new_logger
from pushmetrics.logging.logger import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestNewLogger:
    def test_emits_json_envelope(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "staging")
        monkeypatch.setenv("SERVICE_VERSION", "1.4.0")

        new_logger("billing").info("Successfully pushed metrics to Pushgateway", job="svc")

        record = orjson.loads(capsys.readouterr().out.strip())
        assert record["message"] == "Successfully pushed metrics to Pushgateway"
        assert record["severity"] == "INFO"
        assert record["severity_num"] == 9
        assert record["service"]["service.name"] == "billing"
        assert record["service"]["deployment.environment"] == "staging"
        assert record["attributes"]["job"] == "svc"
        assert record["attributes"]["version"] == "1.4.0"

    def test_filters_below_level(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "error")
        logger = new_logger("billing")
        logger.info("hidden")
        logger.error("shown")

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 1
        assert orjson.loads(lines[0])["message"] == "shown"

    def test_exception_moves_to_error_block(self, capsys) -> None:
        logger = new_logger("billing")
        try:
            raise ConnectionError("gateway down")
        except ConnectionError:
            logger.error("push failed", exc_info=True)

        record = orjson.loads(capsys.readouterr().out.strip())
        assert "ConnectionError: gateway down" in record["error"]["exception"]

    def test_console_disabled(self, capsys) -> None:
        configure_logging(LogConfig(service_name="billing", enable_console=False))
        structlog.get_logger().info("quiet")
        assert capsys.readouterr().out == ""


class TestGetLogger:
    def test_binds_component(self) -> None:
        with capture_logs() as logs:
            get_logger("metrics.client", endpoint="gw:9091").info("hello")
        assert logs == [
            {"component": "metrics.client", "endpoint": "gw:9091", "event": "hello", "log_level": "info"}
        ]
