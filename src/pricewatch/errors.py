from __future__ import annotations


class PriceWatchError(Exception):
    """Base error; `status_code` is what the HTTP layer answers with."""
    status_code: int = 500


class MissingParameter(PriceWatchError):
    status_code = 400


class InvalidParameter(PriceWatchError):
    status_code = 400


class StorageError(PriceWatchError):
    """History backend unavailable or returned garbage."""
    status_code = 500


class NotifyError(PriceWatchError):
    status_code = 502
