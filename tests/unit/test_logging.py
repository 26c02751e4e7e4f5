"""Unit tests for render_gate.logging."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from render_gate.config import Settings
from render_gate.limiter import create_render_limiter
from render_gate.logging import (
    bind_render_context,
    clear_render_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    render_context,
)


@pytest.mark.unit
class TestConfigureLogging:
    def test_sets_level_and_stream_handler(self) -> None:
        configure_logging(level="warning")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_log_file_adds_handler(self, tmp_path: Path) -> None:
        configure_logging(level="debug", log_file=str(tmp_path / "render.log"))
        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert isinstance(root.handlers[1], logging.FileHandler)

    def test_json_lines_carry_render_id(self, tmp_path: Path) -> None:
        log_file = tmp_path / "render.log"
        configure_logging(level="info", format="json", log_file=str(log_file))

        bind_render_context("render-42")
        try:
            structlog.get_logger("render_gate.tests").info("thumbnail_rendered", width=256)
        finally:
            clear_render_context()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "thumbnail_rendered"
        assert record["width"] == 256
        assert record["render_id"] == "render-42"
        assert record["level"] == "info"
        assert record["logger"] == "render_gate.tests"
        assert "timestamp" in record

    def test_render_id_absent_when_unbound(self, tmp_path: Path) -> None:
        log_file = tmp_path / "render.log"
        configure_logging(level="info", format="json", log_file=str(log_file))

        structlog.get_logger("render_gate.tests").info("idle")

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert "render_id" not in record


@pytest.mark.unit
class TestGetLogger:
    def test_returns_usable_logger(self) -> None:
        log = get_logger("render_gate.tests")
        with structlog.testing.capture_logs() as logs:
            log.debug("ping", key="value")
        assert logs == [{"event": "ping", "key": "value", "log_level": "debug"}]


@pytest.mark.unit
class TestConfigureFromSettings:
    def test_json_file_from_settings(self, tmp_path: Path) -> None:
        log_file = tmp_path / "render.log"
        settings = Settings(logging={"level": "warning", "format": "json", "file": str(log_file)})

        configure_logging_from_settings(settings)
        structlog.get_logger("render_gate.tests").info("dropped")
        structlog.get_logger("render_gate.tests").warning("preview_stale", path="a.md")

        lines = log_file.read_text().strip().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["event"] == "preview_stale"
        assert record["path"] == "a.md"
        assert logging.getLogger().level == logging.WARNING

    def test_defaults_to_global_settings(self, test_settings: Settings) -> None:
        configure_logging_from_settings()
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert Path(root.handlers[1].baseFilename) == test_settings.logging.file


@pytest.mark.unit
class TestRenderContext:
    def test_scoped_render_id(self, tmp_path: Path) -> None:
        log_file = tmp_path / "render.log"
        configure_logging(level="info", format="json", log_file=log_file)
        log = structlog.get_logger("render_gate.tests")

        with render_context("thumb-1"):
            log.info("inside")
        log.info("outside")

        inside, outside = (json.loads(line) for line in log_file.read_text().splitlines())
        assert inside["render_id"] == "thumb-1"
        assert "render_id" not in outside

    def test_none_is_a_no_op(self) -> None:
        with render_context(None):
            assert "render_id" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_limiter_slot_tags_events(self, tmp_path: Path) -> None:
        log_file = tmp_path / "render.log"
        configure_logging(level="info", format="json", log_file=log_file)
        limiter = create_render_limiter(1)

        async with limiter.slot(render_id="note.md#cover"):
            structlog.get_logger("render_gate.tests").info("thumbnail_drawn")

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "thumbnail_drawn"
        assert record["render_id"] == "note.md#cover"
        assert "render_id" not in structlog.contextvars.get_contextvars()
