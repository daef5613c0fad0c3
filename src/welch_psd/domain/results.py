from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from welch_psd.domain.enums import FftBackend
from welch_psd.domain.reason_codes import ReasonCode
from welch_psd.domain.status import WelchStatus


@dataclass(frozen=True)
class PsdResult:
    """Published Welch estimate: PSD and frequency axis share `len_pxx`."""

    psd: NDArray[np.float64]
    frequency: NDArray[np.float64]
    len_pxx: int

    num_segments: int
    nfft: int
    backend: FftBackend

    @property
    def peak_frequency(self) -> float:
        return float(self.frequency[int(np.argmax(self.psd))])


@dataclass(frozen=True)
class WelchOutcome:
    """Status-style wrapper around one estimate call."""

    status: WelchStatus
    result: PsdResult | None = None
    reason: ReasonCode | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is WelchStatus.SUCCESS

    @classmethod
    def success(cls, result: PsdResult) -> "WelchOutcome":
        return cls(status=WelchStatus.SUCCESS, result=result)

    @classmethod
    def failure(cls, reason: ReasonCode, message: str) -> "WelchOutcome":
        return cls(status=WelchStatus.FAILURE, reason=reason, message=message)
