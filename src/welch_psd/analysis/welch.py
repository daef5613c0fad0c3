from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from welch_psd.domain.enums import FftBackend, WindowType, parse_backend, parse_window_type
from welch_psd.domain.errors import (
    AllocationError,
    InvalidParameterError,
    TransformError,
    WelchError,
)
from welch_psd.domain.reason_codes import ReasonCode
from welch_psd.domain.results import PsdResult, WelchOutcome
from welch_psd.dsp.transforms import TransformProvider, get_provider
from welch_psd.dsp.windows import get_window, window_energy

logger = logging.getLogger(__name__)


def psd_length(nfft: int) -> int:
    """Number of one-sided bins for an `nfft`-point real transform."""
    nfft = int(nfft)
    if nfft % 2 == 0:
        return nfft // 2 + 1
    return (nfft + 1) // 2


def _reject(reason: ReasonCode, message: str) -> InvalidParameterError:
    logger.error(message)
    return InvalidParameterError(reason, message)


@dataclass(frozen=True)
class WelchParams:
    """Estimator inputs after type and range checks."""

    signal: NDArray[np.float64]
    fs: float
    len_segment: int
    len_overlap: int
    nfft: int
    window: WindowType
    backend: FftBackend
    num_segments: int


def _as_real(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise _reject(
            ReasonCode.NOT_A_REAL_NUMBER,
            f"{name} must be a real number. Got {value!r}",
        )
    return float(value)


def _as_int(name: str, value: object) -> int:
    # floats are rejected outright, never rounded or truncated
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise _reject(
            ReasonCode.NOT_AN_INTEGER,
            f"{name} must be an integer. Got {value!r}",
        )
    return int(value)


def _as_signal(signal: object) -> NDArray[np.float64]:
    try:
        x = np.asarray(signal)
    except (TypeError, ValueError) as exc:
        raise _reject(
            ReasonCode.SIGNAL_NOT_NUMERIC,
            f"Signal must be an array of real numbers: {exc}",
        ) from exc
    if x.dtype.kind not in "iuf":
        raise _reject(
            ReasonCode.SIGNAL_NOT_NUMERIC,
            f"Signal must be an array of real numbers. Got dtype={x.dtype}",
        )
    return x.astype(np.float64, copy=False)


def validate_welch_params(
    signal: object,
    *,
    fs: object,
    len_segment: object,
    len_overlap: object,
    window: str | WindowType,
    backend: str | FftBackend,
    nfft: object,
) -> WelchParams:
    """
    Check every estimator input before any buffer is allocated.

    Types are checked before values: lengths and nfft must be integers
    (bool and float are rejected), fs a real number, the signal a real
    numeric array. Raises InvalidParameterError with a specific reason code
    on the first failure.
    """
    fs_hz = _as_real("Sampling frequency", fs)
    if not fs_hz > 0:
        raise _reject(
            ReasonCode.SAMPLING_FREQUENCY_NOT_POSITIVE,
            f"Sampling frequency of signal must be positive. Got {fs}",
        )

    x = _as_signal(signal)
    if x.ndim != 1:
        raise _reject(
            ReasonCode.SIGNAL_NOT_1D,
            f"Signal must be one-dimensional. Got shape={x.shape}",
        )

    len_signal = int(x.size)
    if len_signal <= 0:
        raise _reject(ReasonCode.SIGNAL_EMPTY, "Length of signal must be positive.")

    seg = _as_int("Length of segment", len_segment)
    if seg <= 0:
        raise _reject(
            ReasonCode.SEGMENT_NOT_POSITIVE,
            f"Length of segment must be positive. Got {seg}",
        )

    ovl = _as_int("Length of overlap", len_overlap)
    if ovl < 0:
        raise _reject(
            ReasonCode.OVERLAP_NEGATIVE,
            f"Number of overlapping points must be non-negative. Got {ovl}",
        )

    if len_signal < seg:
        raise _reject(
            ReasonCode.SEGMENT_LONGER_THAN_SIGNAL,
            f"Length of segment ({seg}) must not exceed length of signal ({len_signal}).",
        )

    if seg <= ovl:
        raise _reject(
            ReasonCode.OVERLAP_NOT_SHORTER_THAN_SEGMENT,
            f"Length of overlap ({ovl}) must be smaller than length of segment ({seg}).",
        )

    step = seg - ovl
    if (len_signal - ovl) % step != 0:
        raise _reject(
            ReasonCode.NON_INTEGRAL_SEGMENT_COUNT,
            "Unable to determine integral number of segments: "
            f"({len_signal} - {ovl}) mod ({seg} - {ovl}) = "
            f"{(len_signal - ovl) % step}",
        )

    try:
        window_type = parse_window_type(window)
        fft_backend = parse_backend(backend)
    except InvalidParameterError as exc:
        logger.error(exc.message)
        raise

    n = _as_int("Number of FFT points", nfft)
    if n <= 0:
        raise _reject(
            ReasonCode.NFFT_NOT_POSITIVE,
            f"Number of FFT points must be positive. Got {n}",
        )

    return WelchParams(
        signal=x,
        fs=fs_hz,
        len_segment=seg,
        len_overlap=ovl,
        nfft=n,
        window=window_type,
        backend=fft_backend,
        num_segments=(len_signal - ovl) // step,
    )


def _run_transform(
    provider: TransformProvider, segment: NDArray[np.float64], nfft: int
) -> NDArray[np.float64]:
    try:
        out = provider.transform(segment, nfft)
    except WelchError:
        raise
    except MemoryError as exc:
        raise AllocationError(
            ReasonCode.ALLOCATION_FAILED,
            f"Failed to allocate memory in the {provider.backend} transform.",
        ) from exc
    except Exception as exc:
        raise TransformError(
            ReasonCode.TRANSFORM_FAILED,
            f"{provider.backend} transform failed: {exc}",
        ) from exc

    out = np.asarray(out, dtype=np.float64)
    if out.shape != (nfft,):
        raise TransformError(
            ReasonCode.TRANSFORM_FAILED,
            f"{provider.backend} transform returned shape {out.shape}, expected ({nfft},)",
        )
    return out


def welch(
    signal: NDArray[np.float64],
    *,
    fs: float,
    len_segment: int,
    len_overlap: int,
    nfft: int,
    window: str | WindowType = WindowType.RECTANGULAR,
    backend: str | FftBackend = FftBackend.FFTW,
    provider: TransformProvider | None = None,
) -> PsdResult:
    """
    Welch PSD estimate of a real 1-D signal (averaged overlapping periodograms).

    Segments of `len_segment` samples are taken at stride
    `len_segment - len_overlap`; the last partial segment is never used, so
    `(len(signal) - len_overlap)` must be a multiple of the stride. Each
    windowed segment goes through the selected transform backend at `nfft`
    points (zero-padded or truncated), and the squared magnitudes are
    averaged and scaled by `1 / (fs * sum(window**2))`. Interior bins are
    doubled for the one-sided spectrum; DC and the Nyquist bin (even nfft)
    are not.

    `provider` overrides the backend lookup; its own `backend` is used.

    Raises InvalidParameterError, AllocationError or TransformError. Nothing
    is returned unless every segment succeeded.
    """
    if provider is not None:
        backend = provider.backend

    params = validate_welch_params(
        signal,
        fs=fs,
        len_segment=len_segment,
        len_overlap=len_overlap,
        window=window,
        backend=backend,
        nfft=nfft,
    )
    if provider is None:
        provider = get_provider(params.backend)

    x = params.signal
    fs = params.fs
    len_segment = params.len_segment
    len_overlap = params.len_overlap
    nfft = params.nfft
    num_segments = params.num_segments

    len_signal = int(x.size)
    win = get_window(params.window, len_signal)
    scale = 1.0 / (fs * window_energy(win, len_segment))

    len_pxx = psd_length(nfft)
    try:
        pxx = np.zeros(len_pxx, dtype=np.float64)
        frequency = np.arange(len_pxx, dtype=np.float64) * fs / nfft
    except MemoryError:
        raise AllocationError(
            ReasonCode.ALLOCATION_FAILED,
            "Failed to allocate memory for Pxx in welch(). Pxx is not modified.",
        ) from None

    step = len_segment - len_overlap
    m = (nfft - 1) // 2  # interior bins carrying a real/imag pair
    has_nyquist = nfft % 2 == 0
    seg_window = win[:len_segment]

    for start in range(0, len_signal - len_segment + 1, step):
        windowed = x[start : start + len_segment] * seg_window
        signalfft = _run_transform(provider, windowed, nfft)

        pxx[0] += signalfft[0] * signalfft[0]
        re = signalfft[1 : 2 * m : 2]
        im = signalfft[2 : 2 * m + 1 : 2]
        pxx[1 : m + 1] += re * re + im * im
        if has_nyquist:
            pxx[len_pxx - 1] += signalfft[nfft - 1] * signalfft[nfft - 1]

        logger.debug("segment at %d accumulated (%s)", start, provider.backend)

    pxx[1 : m + 1] *= 2.0 * scale / num_segments
    pxx[0] *= scale / num_segments
    if has_nyquist:
        pxx[len_pxx - 1] *= scale / num_segments

    pxx.setflags(write=False)
    frequency.setflags(write=False)

    logger.info(
        "Welch estimate: %d segments, nfft=%d, lenPxx=%d, backend=%s",
        num_segments,
        nfft,
        len_pxx,
        provider.backend,
    )
    return PsdResult(
        psd=pxx,
        frequency=frequency,
        len_pxx=len_pxx,
        num_segments=num_segments,
        nfft=nfft,
        backend=FftBackend(provider.backend),
    )


def estimate_psd(
    signal: NDArray[np.float64],
    *,
    fs: float,
    len_segment: int,
    len_overlap: int,
    nfft: int,
    window: str | WindowType = WindowType.RECTANGULAR,
    backend: str | FftBackend = FftBackend.FFTW,
    provider: TransformProvider | None = None,
) -> WelchOutcome:
    """Same as `welch`, but failures come back as a FAILURE outcome."""

    try:
        result = welch(
            signal,
            fs=fs,
            len_segment=len_segment,
            len_overlap=len_overlap,
            nfft=nfft,
            window=window,
            backend=backend,
            provider=provider,
        )
    except WelchError as exc:
        if not isinstance(exc, InvalidParameterError):
            logger.error("Welch method failed: %s", exc.message)
        return WelchOutcome.failure(exc.reason, exc.message)
    return WelchOutcome.success(result)
