"""render-gate — Logging.

structlog renders through the stdlib root logger, so a host that already
configures logging keeps one handler chain.  The render a task is working on
travels in structlog's context variables: anything logged inside
``RenderLimiter.slot(render_id=...)`` carries that ``render_id``.

Hosts call ``configure_logging_from_settings()`` once at startup; tests and
embedders that manage their own settings can call ``configure_logging()``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from render_gate.config import Settings


def bind_render_context(render_id: str) -> None:
    """Tag every later event of the current task with *render_id*."""
    structlog.contextvars.bind_contextvars(render_id=render_id)


def clear_render_context() -> None:
    structlog.contextvars.unbind_contextvars("render_id")


def render_context(render_id: str | None) -> AbstractContextManager[Any]:
    """Scope *render_id* to a ``with`` block; a no-op when it is ``None``."""
    if render_id is None:
        return nullcontext()
    return structlog.contextvars.bound_contextvars(render_id=render_id)


def _pre_chain() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _renderer(format: str) -> Any:
    if format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | Path | None = None,
) -> None:
    """Route structlog and stdlib records through one formatter.

    Args:
        level:    One of debug, info, warning, error, critical.
        format:   ``"console"`` or ``"json"`` (one object per line).
        log_file: Optional file receiving the same lines as stderr.
    """
    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(format),
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(Path(log_file).expanduser()))
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level.upper())


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Apply the ``logging`` section of *settings* (default: ``get_settings()``)."""
    if settings is None:
        from render_gate.config import get_settings

        settings = get_settings()
    cfg = settings.logging
    configure_logging(level=cfg.level, format=cfg.format, log_file=cfg.file)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
