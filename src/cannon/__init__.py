"""cannon — HTTP load generator with concurrent workers."""

from __future__ import annotations

from cannon._internal.config import Configuration
from cannon.engine.executor import AttemptOutcome, Executor, Failure, Success
from cannon.engine.pool import WorkerPool
from cannon.engine.request import PreparedRequest, build_request, parse_headers
from cannon.engine.runner import dispatch, run
from cannon.engine.stop import StopCoordinator, StopReason, StopSignal
from cannon.metrics.counters import CounterSnapshot, Counters, format_summary

__version__ = "0.1.0"

__all__ = [
    "AttemptOutcome",
    "Configuration",
    "CounterSnapshot",
    "Counters",
    "Executor",
    "Failure",
    "PreparedRequest",
    "StopCoordinator",
    "StopReason",
    "StopSignal",
    "Success",
    "WorkerPool",
    "build_request",
    "dispatch",
    "format_summary",
    "parse_headers",
    "run",
]
