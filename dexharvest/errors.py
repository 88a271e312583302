"""Error taxonomy for dexharvest.

Only :class:`UpstreamStatusError` is ever recoverable, and only at the
per-item seams of the move and Pokémon harvesters and the icon download
step. Everything else aborts the running stage.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

__all__ = [
    "HarvestError",
    "TransportError",
    "UpstreamStatusError",
    "PayloadError",
    "InputFileError",
]


class HarvestError(Exception):
    """Base class for every error raised by dexharvest."""


class TransportError(HarvestError):
    """The request never produced an HTTP response (DNS, connect, timeout…)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Request to {url} failed: {message}")
        self.url = url


class UpstreamStatusError(HarvestError):
    """The upstream answered with a non-success HTTP status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"HTTP {status_code} fetching {url}")
        self.url = url
        self.status_code = status_code


class PayloadError(HarvestError):
    """A response body is not JSON or lacks a field we cannot default."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        detail = f"{message} ({url})" if url else message
        super().__init__(detail)
        self.url = url


class InputFileError(HarvestError):
    """An input file produced by an earlier stage is missing or malformed."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
