"""Tests for logging setup and structured records."""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from fermi_tool.core.logging_config import (
    FermiFormatter,
    LoggingContext,
    PerformanceFilter,
    get_logger,
    log_performance,
    setup_logging,
)


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("fermi_tool")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def make_record(message="hello"):
    return logging.LogRecord("fermi_tool.test", logging.INFO, __file__, 1, message, None, None)


class TestFermiFormatter:
    """Test JSON record formatting."""

    def test_context_fields(self):
        record = make_record()
        record.run_id = "abc123"
        record.variable = "Population"

        data = json.loads(FermiFormatter().format(record))

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["run_id"] == "abc123"
        assert data["variable"] == "Population"
        assert "component" not in data

    def test_elapsed_from_performance_filter(self):
        formatter = FermiFormatter(include_performance=True)
        record = make_record()
        PerformanceFilter().filter(record)

        data = json.loads(formatter.format(record))

        assert data["elapsed"] >= 0

    def test_elapsed_disabled(self):
        record = make_record()
        PerformanceFilter().filter(record)
        data = json.loads(FermiFormatter(include_performance=False).format(record))
        assert "elapsed" not in data


class TestSetupLogging:
    """Test logger configuration."""

    def test_get_logger_namespacing(self):
        assert get_logger("fermi_tool.core.engine").name == "fermi_tool.core.engine"
        assert get_logger("engine").name == "fermi_tool.engine"

    def test_structured_file_log(self, temp_dir):
        log_file = temp_dir / "logs" / "run.log"
        setup_logging("INFO", log_file=log_file, enable_structured=True)

        logger = get_logger("tests")
        with LoggingContext(logger, run_id="r1", component="engine"):
            logger.info("inside")
        logger.info("outside")
        for handler in logging.getLogger("fermi_tool").handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]

        assert [r["message"] for r in records] == ["inside", "outside"]
        assert records[0]["run_id"] == "r1"
        assert "run_id" not in records[1]
        assert all("elapsed" in r for r in records)

    def test_level_filters(self, temp_dir):
        log_file = temp_dir / "run.log"
        setup_logging("warning", log_file=log_file)

        get_logger("tests").info("hidden")
        get_logger("tests").warning("shown")
        for handler in logging.getLogger("fermi_tool").handlers:
            handler.flush()

        text = log_file.read_text()
        assert "shown" in text
        assert "hidden" not in text


class TestLogPerformance:
    """Test the timing decorator."""

    def test_returns_result(self):
        @log_performance
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_reraises(self):
        @log_performance
        def fail():
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            fail()
