"""Run configuration for cannon."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from cannon._internal.errors import ConfigError

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


@dataclass(frozen=True)
class Configuration:
    """Fully resolved settings for one load run.

    Built once before dispatch and read-only afterwards. Exactly one of
    ``body`` and ``multipart_file`` is sent per attempt: the file when
    ``multipart`` is set and a file path is given, the body otherwise.

    Attributes:
        url: Target URL.
        concurrency: Concurrency factor.
        cpu_multiplier: Manual scaling knob multiplied with ``concurrency``.
        time_limit: Run duration in seconds. 0 means unbounded.
        requests: Quota of settled attempts. 0 means unbounded.
        wait: Pacing delay between a worker's attempts, in seconds.
        method: HTTP method.
        headers: Raw header spec, ``Name: Value`` pairs separated by ``;``.
        body: Request body bytes.
        timeout: Per-request timeout in seconds.
        insecure: Skip TLS certificate verification.
        multipart: Send the upload file as multipart/form-data.
        multipart_file: Path of the file uploaded under field ``file``.
    """

    url: str
    concurrency: int = 1
    cpu_multiplier: int = 1
    time_limit: float = 0.0
    requests: int = 0
    wait: float = 0.0
    method: str = "GET"
    headers: str = ""
    body: bytes = b""
    timeout: float = 1.0
    insecure: bool = False
    multipart: bool = False
    multipart_file: str = ""

    def __post_init__(self) -> None:
        if not self.url:
            msg = "url must not be empty"
            raise ConfigError(msg)
        if self.concurrency < 1:
            msg = f"concurrency must be >= 1, got: {self.concurrency}"
            raise ConfigError(msg)
        if self.cpu_multiplier < 1:
            msg = f"cpu multiplier must be >= 1, got: {self.cpu_multiplier}"
            raise ConfigError(msg)
        if self.time_limit < 0:
            msg = f"time limit must be >= 0, got: {self.time_limit}"
            raise ConfigError(msg)
        if self.requests < 0:
            msg = f"requests must be >= 0, got: {self.requests}"
            raise ConfigError(msg)
        if self.wait < 0:
            msg = f"wait must be >= 0, got: {self.wait}"
            raise ConfigError(msg)
        if self.timeout <= 0:
            msg = f"timeout must be positive, got: {self.timeout}"
            raise ConfigError(msg)

    @property
    def pool_size(self) -> int:
        """Return the number of workers to run."""
        return self.concurrency * self.cpu_multiplier

    @property
    def uses_multipart(self) -> bool:
        """Return True if attempts upload ``multipart_file`` instead of ``body``."""
        return self.multipart and bool(self.multipart_file)


def load_body(spec: str) -> bytes:
    """Resolve the ``-d`` argument into request body bytes.

    Args:
        spec: Literal body text, or ``@path`` to read the body from a file.

    Returns:
        The body bytes.

    Raises:
        ConfigError: If the ``@path`` file cannot be read.
    """
    if not spec.startswith("@"):
        return spec.encode("utf-8")

    file_name = spec[1:]
    try:
        return Path(file_name).read_bytes()
    except OSError as exc:
        msg = f"Error reading file {file_name}: {exc}"
        raise ConfigError(msg) from exc


def parse_duration(text: str) -> float:
    """Parse a duration such as ``1s``, ``500ms`` or ``1m30s`` into seconds.

    A bare number is read as seconds.

    Args:
        text: Duration string.

    Returns:
        Duration in seconds.

    Raises:
        ConfigError: If the string is not a valid duration.
    """
    value = text.strip()
    try:
        return float(value)
    except ValueError:
        pass

    if not value or _DURATION_PART.sub("", value):
        msg = f"invalid duration: {text!r}"
        raise ConfigError(msg)

    return sum(
        float(amount) * _DURATION_UNITS[unit]
        for amount, unit in _DURATION_PART.findall(value)
    )
