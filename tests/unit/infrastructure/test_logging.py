"""Tests for the loguru setup."""

import json
import logging

import pytest
from loguru import logger

from src.catalog.api.utils.app_startup import configure_logging
from src.catalog.runtime.config.config_data import ConfigData


@pytest.fixture
def restore_logging():
    yield
    configure_logging()


def _file_config(tmp_path, fmt: str) -> ConfigData:
    config = ConfigData()
    config.logging.level = "DEBUG"
    config.logging.format = fmt
    config.logging.file = str(tmp_path / "logs" / "catalog.log")
    return config


@pytest.mark.usefixtures("restore_logging")
class TestConfigureLogging:
    def test_plain_file_sink_receives_messages(self, tmp_path):
        config = _file_config(tmp_path, "plain")

        configure_logging(config)
        logger.info("catalog ready")
        logger.remove()

        content = (tmp_path / "logs" / "catalog.log").read_text()
        assert "catalog ready" in content
        assert "[-]" in content

    def test_json_file_sink_carries_request_id(self, tmp_path):
        config = _file_config(tmp_path, "json")

        configure_logging(config)
        with logger.contextualize(request_id="req-42"):
            logger.info("inside request")
        logger.remove()

        lines = (tmp_path / "logs" / "catalog.log").read_text().splitlines()
        records = [json.loads(line)["record"] for line in lines]
        matching = [r for r in records if r["message"] == "inside request"]
        assert matching
        assert matching[0]["extra"]["request_id"] == "req-42"

    def test_stdlib_records_are_forwarded(self, tmp_path):
        config = _file_config(tmp_path, "plain")

        configure_logging(config)
        logging.getLogger("catalog.stdlib").warning("from stdlib")
        logging.getLogger("uvicorn.access").critical("access line")
        logger.remove()

        content = (tmp_path / "logs" / "catalog.log").read_text()
        assert "from stdlib" in content
        assert "access line" not in content

    def test_no_file_sink_without_path(self, tmp_path):
        config = ConfigData()
        config.logging.file = None

        configure_logging(config)
        logger.info("console only")

        assert not any(tmp_path.iterdir())
