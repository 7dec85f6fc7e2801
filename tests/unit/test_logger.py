import logging

import pytest

from labreport.logging.logger import Log


class TestLog:
    def test_info_reaches_labreport_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="labreport"):
            Log.info("document loaded")
        assert "document loaded" in caplog.text
        assert caplog.records[0].name == "labreport"

    def test_warning_and_error_levels(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="labreport"):
            Log.warning("careful")
            Log.error("broken")
        levels = [record.levelname for record in caplog.records]
        assert levels == ["WARNING", "ERROR"]

    def test_debug_hidden_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="labreport"):
            Log.debug("noise")
        assert "noise" not in caplog.text

    def test_extra_fields_attached(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="labreport"):
            Log.info("stage done", stage="direct")
        assert caplog.records[0].stage == "direct"  # type: ignore[attr-defined]

    def test_configure_adds_single_handler(self) -> None:
        logger = logging.getLogger("labreport")
        saved_handlers = list(logger.handlers)
        saved_level = logger.level
        logger.handlers.clear()
        try:
            Log.configure("debug")
            Log.configure("info")
            assert len(logger.handlers) == 1
            assert logger.level == logging.INFO
        finally:
            logger.handlers[:] = saved_handlers
            logger.setLevel(saved_level)
