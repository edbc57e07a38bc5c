"""Top-level dispatch: wires the stop coordinator, worker pool and counters."""

from __future__ import annotations

import asyncio
import sys
import time
from typing import TYPE_CHECKING

from cannon._internal.logging import get_logger
from cannon.engine.pool import WorkerPool
from cannon.engine.stop import StopCoordinator

if TYPE_CHECKING:
    from cannon._internal.config import Configuration
    from cannon.metrics.counters import CounterSnapshot

logger = get_logger("engine.runner")


def _install_uvloop() -> None:
    """Install uvloop as the default event loop policy if available.

    Falls back silently to the default asyncio event loop on Windows
    or if uvloop is not installed.
    """
    if sys.platform == "win32":
        return

    try:
        import uvloop

        uvloop.install()
        logger.debug("uvloop installed as event loop policy")
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")


async def dispatch(config: Configuration) -> CounterSnapshot:
    """Run the worker pool until a stop trigger fires and every worker exits.

    Args:
        config: Run configuration.

    Returns:
        Final counter values.
    """
    coordinator = StopCoordinator(time_limit=config.time_limit, requests=config.requests)
    pool = WorkerPool(config, coordinator)

    logger.debug(
        "Dispatching: url=%s, workers=%d, time_limit=%.1fs, requests=%d",
        config.url,
        config.pool_size,
        config.time_limit,
        config.requests,
    )

    start = time.monotonic()
    await coordinator.start()
    try:
        snapshot = await pool.run()
    finally:
        await coordinator.close()

    logger.debug(
        "Dispatch finished in %.2fs (%s)",
        time.monotonic() - start,
        coordinator.signal.reason.value if coordinator.signal.reason else "all workers exited",
    )
    return snapshot


def run(config: Configuration) -> CounterSnapshot:
    """Blocking entry point that runs one load test to completion.

    Args:
        config: Run configuration.

    Returns:
        Final counter values.
    """
    _install_uvloop()
    return asyncio.run(dispatch(config))
