from __future__ import annotations

from enum import StrEnum

from welch_psd.domain.errors import InvalidParameterError
from welch_psd.domain.reason_codes import ReasonCode


class WindowType(StrEnum):
    RECTANGULAR = "rectangular"


class FftBackend(StrEnum):
    """Transform backends, keyed by the identifiers callers pass in."""

    FFTW = "fftw"  # single-threaded CPU
    FFTW_OPENMP = "fftw_openmp"  # multi-threaded CPU
    CUFFT = "cufft"  # accelerator


def parse_window_type(name: str | WindowType) -> WindowType:
    try:
        return WindowType(name)
    except ValueError:
        raise InvalidParameterError(
            ReasonCode.UNKNOWN_WINDOW,
            f"Unrecognized type of window function: {name!r}",
        ) from None


def parse_backend(name: str | FftBackend) -> FftBackend:
    try:
        return FftBackend(name)
    except ValueError:
        raise InvalidParameterError(
            ReasonCode.UNKNOWN_BACKEND,
            f"Unrecognized FFT implementation: {name!r}",
        ) from None
