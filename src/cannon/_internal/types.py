"""Shared type aliases for cannon."""

from __future__ import annotations

from multidict import CIMultiDict

# Request headers, case-insensitive by name.
Headers = CIMultiDict[str]
