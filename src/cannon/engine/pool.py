"""Worker pool that dispatches requests until the stop signal fires."""

from __future__ import annotations

import asyncio
from enum import Enum, auto
from typing import TYPE_CHECKING

from cannon._internal.errors import RequestBuildError
from cannon._internal.logging import get_logger
from cannon.engine.executor import Executor, Success
from cannon.engine.request import build_request
from cannon.metrics.counters import Counters

if TYPE_CHECKING:
    from cannon._internal.config import Configuration
    from cannon.engine.stop import StopCoordinator
    from cannon.metrics.counters import CounterSnapshot

logger = get_logger("engine.pool")


class WorkerStep(Enum):
    """Result of one worker iteration."""

    CONTINUE = auto()
    STOP = auto()


class WorkerPool:
    """Runs ``config.pool_size`` symmetric workers against one target.

    Workers share nothing but the counters and the stop signal. Each one
    loops: check stop, build, execute, record, pace, check quota. A stop is
    observed only between attempts, so in-flight requests finish (or time
    out) before their worker exits.

    Attributes:
        config: Run configuration.
        counters: Attempt counters shared by all workers.
    """

    def __init__(
        self,
        config: Configuration,
        coordinator: StopCoordinator,
        counters: Counters | None = None,
    ) -> None:
        """Initialize the pool.

        Args:
            config: Run configuration.
            coordinator: Stop coordinator whose signal ends the run.
            counters: Counters to update. A fresh instance by default.
        """
        self.config = config
        self.counters = counters if counters is not None else Counters()
        self._coordinator = coordinator

    async def run(self) -> CounterSnapshot:
        """Start every worker and wait for all of them to exit.

        Returns:
            Counter values read after the pool has drained.
        """
        pool_size = self.config.pool_size
        logger.debug("Starting %d workers", pool_size)

        async with Executor(self.config.timeout, insecure=self.config.insecure) as executor:
            workers = [
                asyncio.create_task(
                    self._run_worker(worker_id, executor),
                    name=f"cannon-worker-{worker_id}",
                )
                for worker_id in range(pool_size)
            ]
            await asyncio.gather(*workers)

        logger.debug("All %d workers exited", pool_size)
        return self.counters.snapshot()

    async def _run_worker(self, worker_id: int, executor: Executor) -> None:
        while await self.step(worker_id, executor) is WorkerStep.CONTINUE:
            pass
        logger.debug("Worker %d exited", worker_id)

    async def step(self, worker_id: int, executor: Executor) -> WorkerStep:
        """Run one worker iteration.

        Args:
            worker_id: Identifier of the calling worker, for logging.
            executor: Shared executor.

        Returns:
            ``WorkerStep.STOP`` if the worker must exit, else ``CONTINUE``.
        """
        if self._coordinator.is_stopped():
            return WorkerStep.STOP

        try:
            request = build_request(self.config)
        except RequestBuildError as exc:
            logger.error("Worker %d: %s", worker_id, exc)
            return WorkerStep.STOP

        outcome = await executor.execute(request)
        if isinstance(outcome, Success):
            index = self.counters.record_success()
            logger.info("%6d: %s %s %d", index, request.method, request.url, outcome.status_code)
        else:
            self.counters.record_failure()
            logger.info("Error making request: %s", outcome.cause)

        if self.config.wait > 0:
            await asyncio.sleep(self.config.wait)

        if self._coordinator.check_quota(self.counters.settled()):
            return WorkerStep.STOP
        return WorkerStep.CONTINUE
