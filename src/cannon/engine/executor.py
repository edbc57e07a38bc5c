"""Shared HTTP client that sends prepared requests and classifies outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

if TYPE_CHECKING:
    from cannon.engine.request import PreparedRequest


@dataclass(frozen=True)
class Success:
    """A completed round trip, whatever the status code.

    Attributes:
        status_code: HTTP response status code.
    """

    status_code: int


@dataclass(frozen=True)
class Failure:
    """A transport-level error: connection, DNS, TLS or timeout.

    Attributes:
        cause: ``"<ExceptionType>: <message>"`` description of the error.
    """

    cause: str


AttemptOutcome = Success | Failure


class Executor:
    """Async HTTP executor wrapping one ``aiohttp.ClientSession``.

    The session is shared by every worker of a pool. It carries the
    per-request timeout and, in insecure mode, a connector that skips TLS
    certificate verification. The connector has no connection cap so the
    worker count alone bounds concurrency.
    """

    def __init__(self, timeout: float, *, insecure: bool = False) -> None:
        """Initialize the executor.

        Args:
            timeout: Per-request timeout in seconds.
            insecure: Skip TLS certificate verification.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._insecure = insecure
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> Executor:
        """Open the underlying aiohttp session."""
        connector = aiohttp.TCPConnector(
            limit=0,
            ssl=False if self._insecure else True,
        )
        self._session = aiohttp.ClientSession(
            timeout=self._timeout,
            connector=connector,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def execute(self, request: PreparedRequest) -> AttemptOutcome:
        """Send one request.

        The response body is released unread.

        Args:
            request: Request built for this attempt.

        Returns:
            ``Success`` on any HTTP response, ``Failure`` on transport errors.

        Raises:
            RuntimeError: If the executor is used outside of an async
                context manager.
        """
        if self._session is None:
            msg = "Executor must be used as an async context manager"
            raise RuntimeError(msg)

        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.data,
            ) as resp:
                return Success(status_code=resp.status)
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            return Failure(cause=f"{type(exc).__name__}: {exc}")
