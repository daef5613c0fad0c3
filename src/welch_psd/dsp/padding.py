from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from welch_psd.domain.errors import AllocationError, InvalidParameterError
from welch_psd.domain.reason_codes import ReasonCode


def pad_zero(x: NDArray[np.float64], n_padded: int) -> NDArray[np.float64]:
    """
    Copy `x` into a new buffer of length `n_padded`, zero-filling the tail.

    Only extends: a buffer shorter than `x` is rejected. When the lengths
    match the result is a plain copy.
    """
    xx = np.asarray(x, dtype=np.float64)
    n = int(xx.size)
    n_padded = int(n_padded)

    if n_padded <= 0:
        raise InvalidParameterError(
            ReasonCode.PADDED_LENGTH_TOO_SHORT,
            f"Padded length must be positive. Got {n_padded}",
        )
    if n > n_padded:
        raise InvalidParameterError(
            ReasonCode.PADDED_LENGTH_TOO_SHORT,
            f"The original array has larger size ({n}) than the array to pad ({n_padded}).",
        )

    try:
        out = np.zeros(n_padded, dtype=np.float64)
    except MemoryError:
        raise AllocationError(
            ReasonCode.ALLOCATION_FAILED,
            f"Failed to allocate {n_padded} samples for zero padding.",
        ) from None

    out[:n] = xx
    return out
