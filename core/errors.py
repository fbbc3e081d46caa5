"""Error taxonomy for the holdings ledger and valuation pipeline.

Every error raised by the core carries an `ErrorKind` so callers can branch on
the kind (fatal misconfiguration vs bad input vs transient infrastructure)
without catching one broad exception type.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    INVALID_ASSET = "invalid_asset"
    STORE_UNAVAILABLE = "store_unavailable"
    FETCH = "fetch"
    PARSE = "parse"


class HoldingsError(Exception):
    """Base exception for holdings and valuation errors."""

    kind: ErrorKind

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class ConfigurationError(HoldingsError):
    """A required deployment parameter is missing or malformed (fatal)."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, missing: tuple[str, ...] = ()):
        super().__init__(message, retryable=False)
        self.missing = missing


class InvalidAssetError(HoldingsError):
    """The caller supplied an asset id outside the catalog."""

    kind = ErrorKind.INVALID_ASSET

    def __init__(self, asset: object):
        super().__init__(f"Invalid asset name: {asset!r}", retryable=False)
        self.asset = asset


class StoreUnavailableError(HoldingsError):
    """The durable store could not be reached (transient)."""

    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class FetchError(HoldingsError):
    """Transport failure or non-success status from the quote service."""

    kind = ErrorKind.FETCH

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, retryable=_is_retryable_status(status_code))
        self.status_code = status_code


class ParseError(HoldingsError):
    """The quote service answered with a body we cannot interpret."""

    kind = ErrorKind.PARSE

    def __init__(self, message: str):
        super().__init__(message, retryable=False)


def _is_retryable_status(status_code: int | None) -> bool:
    # No status means the request never completed (connection/timeout).
    if status_code is None:
        return True
    if status_code == 429:
        return True
    return 500 <= status_code < 600
