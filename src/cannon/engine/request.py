"""Per-attempt request construction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiohttp
from multidict import CIMultiDict

from cannon._internal.errors import RequestBuildError

if TYPE_CHECKING:
    from cannon._internal.config import Configuration
    from cannon._internal.types import Headers

MULTIPART_FIELD = "file"


@dataclass
class PreparedRequest:
    """One outgoing request, ready to be sent.

    Attributes:
        method: HTTP method.
        url: Target URL.
        headers: Request headers.
        data: Raw body bytes, or a multipart writer for uploads. A writer
            can only be sent once.
    """

    method: str
    url: str
    headers: Headers
    data: bytes | aiohttp.MultipartWriter = b""


def parse_headers(spec: str) -> Headers:
    """Parse a ``Name: Value; Name: Value`` header spec.

    Each entry is split on its first colon and both sides are trimmed.
    Later entries overwrite earlier ones with the same name. Entries with
    no colon or an empty name are skipped.

    Args:
        spec: Raw header spec string.

    Returns:
        Parsed headers.
    """
    headers: Headers = CIMultiDict()
    if not spec:
        return headers

    for entry in spec.split(";"):
        name, sep, value = entry.partition(":")
        name = name.strip()
        if not sep or not name:
            continue
        headers[name] = value.strip()
    return headers


def _multipart_body(file_path: str) -> aiohttp.MultipartWriter:
    path = Path(file_path)
    try:
        content = path.read_bytes()
    except OSError as exc:
        msg = f"Error opening file: {exc}"
        raise RequestBuildError(msg) from exc

    writer = aiohttp.MultipartWriter("form-data")
    part = writer.append(content, {"Content-Type": "application/octet-stream"})
    part.set_content_disposition("form-data", name=MULTIPART_FIELD, filename=path.name)
    return writer


def build_request(config: Configuration) -> PreparedRequest:
    """Build a fresh request for one attempt.

    Args:
        config: Run configuration.

    Returns:
        The request to send.

    Raises:
        RequestBuildError: If the multipart upload file cannot be read.
    """
    headers: Headers = CIMultiDict()
    data: bytes | aiohttp.MultipartWriter

    if config.uses_multipart:
        writer = _multipart_body(config.multipart_file)
        headers["Content-Type"] = writer.content_type
        data = writer
    else:
        data = config.body

    headers.update(parse_headers(config.headers))

    return PreparedRequest(
        method=config.method,
        url=config.url,
        headers=headers,
        data=data,
    )
