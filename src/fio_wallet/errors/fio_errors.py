"""FIOError — base exception class for all py-fio errors."""

from __future__ import annotations


class FIOError(Exception):
    """Base error for all FIO key, account and messaging operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
    """

    def __init__(self, message: str, *, code: str = "fio-error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
