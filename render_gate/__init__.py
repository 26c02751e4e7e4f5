"""render-gate — Bounded render admission for asyncio hosts.

Two independent pieces:
    - RenderLimiter — caps concurrent renders, admits waiters in FIFO order
    - OnceLogger    — reports each diagnostic key only the first time
"""

__version__ = "0.1.0"

from render_gate.limiter import (
    RenderLimiter,
    RenderSlot,
    create_render_limiter,
    normalize_capacity,
)
from render_gate.once_logger import OnceLogger, create_once_logger

__all__ = [
    "__version__",
    "OnceLogger",
    "RenderLimiter",
    "RenderSlot",
    "create_once_logger",
    "create_render_limiter",
    "normalize_capacity",
]
