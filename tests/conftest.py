"""Shared test fixtures for the cannon test suite."""

from __future__ import annotations

import asyncio
import socket
import ssl
import threading
from typing import TYPE_CHECKING, Any

import pytest
import trustme
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


@pytest.fixture
def refused_url() -> str:
    """URL of a local port with nothing listening on it."""
    return f"http://127.0.0.1:{_get_free_port()}/"


# =============================================================================
# Target HTTP server handlers
# =============================================================================

_RECEIVED = web.AppKey("received", list)


async def _echo_handler(request: web.Request) -> web.Response:
    """Echo back request details as JSON."""
    body = await request.read()
    request.app[_RECEIVED].append(
        {
            "method": request.method,
            "path": request.path,
            "headers": dict(request.headers),
            "body": body,
        }
    )
    return web.json_response(
        {
            "method": request.method,
            "path": str(request.path),
            "headers": dict(request.headers),
            "body": body.decode("utf-8", errors="replace"),
        },
        status=200,
    )


async def _status_handler(request: web.Request) -> web.Response:
    """Return a configurable status (query param: ?code=500)."""
    request.app[_RECEIVED].append({"method": request.method, "path": request.path})
    status = int(request.query.get("code", "500"))
    return web.json_response({"status": status}, status=status)


async def _delay_handler(request: web.Request) -> web.Response:
    """Respond after a configurable delay (query param: ?delay=0.5)."""
    request.app[_RECEIVED].append({"method": request.method, "path": request.path})
    delay = float(request.query.get("delay", "0.1"))
    await asyncio.sleep(delay)
    return web.json_response({"delayed_by": delay})


async def _upload_handler(request: web.Request) -> web.Response:
    """Record a multipart/form-data upload."""
    form = await request.post()
    upload = form.get("file")
    if not isinstance(upload, web.FileField):
        return web.json_response({"error": "no file field"}, status=400)
    request.app[_RECEIVED].append(
        {
            "method": request.method,
            "path": request.path,
            "headers": dict(request.headers),
            "filename": upload.filename,
            "body": upload.file.read(),
        }
    )
    return web.json_response({"filename": upload.filename})


def _create_target_app() -> web.Application:
    """Build the target app with all test routes."""
    app = web.Application()
    app[_RECEIVED] = []
    app.router.add_route("*", "/echo{path:.*}", _echo_handler)
    app.router.add_route("*", "/status", _status_handler)
    app.router.add_get("/delay", _delay_handler)
    app.router.add_post("/upload", _upload_handler)
    return app


class TargetServer:
    """Handle on a running target server.

    Attributes:
        url: Base URL, e.g. ``http://127.0.0.1:54321``.
    """

    def __init__(self, url: str, app: web.Application) -> None:
        self.url = url
        self._app = app

    @property
    def received(self) -> list[dict[str, Any]]:
        """Return a record of every request the server has handled."""
        return self._app[_RECEIVED]

    @property
    def hits(self) -> int:
        """Return the number of requests the server has handled."""
        return len(self._app[_RECEIVED])


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def target_server() -> AsyncIterator[TargetServer]:
    """Aiohttp target server running on the test's event loop."""
    app = _create_target_app()
    port = _get_free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield TargetServer(f"http://127.0.0.1:{port}", app)
    await runner.cleanup()


@pytest.fixture
async def tls_target_server() -> AsyncIterator[TargetServer]:
    """HTTPS target server whose certificate is signed by an untrusted test CA."""
    ca = trustme.CA()
    ssl_context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    ca.issue_cert("127.0.0.1").configure_cert(ssl_context)

    app = _create_target_app()
    port = _get_free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port, ssl_context=ssl_context)
    await site.start()
    yield TargetServer(f"https://127.0.0.1:{port}", app)
    await runner.cleanup()


@pytest.fixture
def sync_target_server() -> Iterator[TargetServer]:
    """Target server running in a background thread for sync tests.

    Needed when the code under test runs its own event loop and blocks
    the main thread (``cannon.run`` and the CLI).
    """
    port = _get_free_port()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []
    app = _create_target_app()

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(app)
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield TargetServer(f"http://127.0.0.1:{port}", app)

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)
