"""Shared pytest fixtures for the render-gate test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator

import pytest
import structlog

from render_gate.config import Settings, override_settings
from render_gate.limiter import RenderLimiter, create_render_limiter
from render_gate.once_logger import OnceLogger


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """Undo ``configure_logging()`` so structlog loggers are not cached across tests."""
    root = logging.getLogger()
    level = root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def test_settings(tmp_path: Path) -> Generator[Settings, None, None]:
    settings = Settings(
        limiter={"max_parallel": 2},
        logging={"level": "debug", "format": "console", "file": str(tmp_path / "render.log")},
    )
    override_settings(settings)
    yield settings
    override_settings(None)  # type: ignore[arg-type]


@pytest.fixture
def limiter() -> RenderLimiter:
    return create_render_limiter(2)


@pytest.fixture
def emitted() -> list[tuple[str, object]]:
    return []


@pytest.fixture
def once_log(emitted: list[tuple[str, object]]) -> OnceLogger:
    return OnceLogger(sink=lambda message, detail: emitted.append((message, detail)))
