from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from welch_psd.domain.enums import WindowType, parse_window_type
from welch_psd.domain.errors import AllocationError
from welch_psd.domain.reason_codes import ReasonCode


def get_window(window_type: str | WindowType, length: int) -> NDArray[np.float64]:
    """Window coefficients. Only the rectangular window is supported."""

    parse_window_type(window_type)  # rejects anything but RECTANGULAR
    try:
        return np.ones(int(length), dtype=np.float64)
    except MemoryError:
        raise AllocationError(
            ReasonCode.ALLOCATION_FAILED,
            "Failed to allocate memory for the window function.",
        ) from None


def window_energy(window: NDArray[np.float64], len_segment: int) -> float:
    """Sum of squared coefficients over the part applied to a segment."""
    w = np.asarray(window, dtype=np.float64)[: int(len_segment)]
    return float(np.dot(w, w))
