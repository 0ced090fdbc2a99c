"""Tests for logging setup."""

import asyncio
import logging

import pytest
from loguru import logger

from fleetbot.core.logger import session_ctx, setup_structured_logging


@pytest.fixture
def records(tmp_path):
    """Configure logging into tmp_path and capture loguru records."""
    setup_structured_logging("DEBUG", json_format=True, logs_dir=tmp_path)
    captured = []
    logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove()
    logging.basicConfig(handlers=[], force=True)


def test_creates_log_files(tmp_path, records):
    logger.error("boom")

    assert (tmp_path / "fleet.jsonl").exists()
    assert list(tmp_path.glob("errors_*.log"))


@pytest.mark.asyncio
async def test_session_tag_is_scoped_to_task(records):
    """Test that only records emitted inside the session's task carry its handle."""

    async def session_task():
        session_ctx.set("alice")
        logger.info("inside")

    await asyncio.create_task(session_task())
    logger.info("outside")

    by_message = {record["message"]: record["extra"] for record in records}
    assert by_message["inside"]["session"] == "alice"
    assert "session" not in by_message["outside"]


def test_stdlib_logging_is_intercepted(records):
    logging.getLogger("web.routes.bots").warning("from stdlib")

    assert any(record["message"] == "from stdlib" for record in records)
