from __future__ import annotations

from welch_psd.domain.reason_codes import ReasonCode


class WelchError(Exception):
    """Base class for every failure raised by the estimator or a backend."""

    def __init__(self, reason: ReasonCode, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class InvalidParameterError(WelchError, ValueError):
    pass


class AllocationError(WelchError, MemoryError):
    pass


class TransformError(WelchError, RuntimeError):
    pass
