from __future__ import annotations

from enum import StrEnum


class ReasonCode(StrEnum):
    """Stable failure codes reported by the estimator and its backends."""

    # parameter validation
    NOT_A_REAL_NUMBER = "NOT_A_REAL_NUMBER"
    NOT_AN_INTEGER = "NOT_AN_INTEGER"
    SIGNAL_NOT_NUMERIC = "SIGNAL_NOT_NUMERIC"
    SAMPLING_FREQUENCY_NOT_POSITIVE = "SAMPLING_FREQUENCY_NOT_POSITIVE"
    SIGNAL_EMPTY = "SIGNAL_EMPTY"
    SIGNAL_NOT_1D = "SIGNAL_NOT_1D"
    SEGMENT_NOT_POSITIVE = "SEGMENT_NOT_POSITIVE"
    OVERLAP_NEGATIVE = "OVERLAP_NEGATIVE"
    SEGMENT_LONGER_THAN_SIGNAL = "SEGMENT_LONGER_THAN_SIGNAL"
    OVERLAP_NOT_SHORTER_THAN_SEGMENT = "OVERLAP_NOT_SHORTER_THAN_SEGMENT"
    NON_INTEGRAL_SEGMENT_COUNT = "NON_INTEGRAL_SEGMENT_COUNT"
    UNKNOWN_WINDOW = "UNKNOWN_WINDOW"
    UNKNOWN_BACKEND = "UNKNOWN_BACKEND"
    NFFT_NOT_POSITIVE = "NFFT_NOT_POSITIVE"
    PADDED_LENGTH_TOO_SHORT = "PADDED_LENGTH_TOO_SHORT"

    # resources
    ALLOCATION_FAILED = "ALLOCATION_FAILED"

    # transform backends
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    TRANSFORM_FAILED = "TRANSFORM_FAILED"


INVALID_PARAMETER_CODES: set[ReasonCode] = {
    ReasonCode.NOT_A_REAL_NUMBER,
    ReasonCode.NOT_AN_INTEGER,
    ReasonCode.SIGNAL_NOT_NUMERIC,
    ReasonCode.SAMPLING_FREQUENCY_NOT_POSITIVE,
    ReasonCode.SIGNAL_EMPTY,
    ReasonCode.SIGNAL_NOT_1D,
    ReasonCode.SEGMENT_NOT_POSITIVE,
    ReasonCode.OVERLAP_NEGATIVE,
    ReasonCode.SEGMENT_LONGER_THAN_SIGNAL,
    ReasonCode.OVERLAP_NOT_SHORTER_THAN_SEGMENT,
    ReasonCode.NON_INTEGRAL_SEGMENT_COUNT,
    ReasonCode.UNKNOWN_WINDOW,
    ReasonCode.UNKNOWN_BACKEND,
    ReasonCode.NFFT_NOT_POSITIVE,
    ReasonCode.PADDED_LENGTH_TOO_SHORT,
}

ALLOCATION_CODES: set[ReasonCode] = {
    ReasonCode.ALLOCATION_FAILED,
}

TRANSFORM_CODES: set[ReasonCode] = {
    ReasonCode.BACKEND_UNAVAILABLE,
    ReasonCode.TRANSFORM_FAILED,
}
