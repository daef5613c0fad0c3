from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.typing import NDArray
from scipy import fft as sp_fft

from welch_psd.domain.enums import FftBackend, parse_backend
from welch_psd.domain.errors import TransformError
from welch_psd.domain.reason_codes import ReasonCode
from welch_psd.dsp.padding import pad_zero

logger = logging.getLogger(__name__)

# cuFFT plans and device buffers are not shared safely between host threads.
_DEVICE_LOCK = threading.Lock()


class TransformProvider(Protocol):
    """Real-input DFT of one segment, returned in the packed one-sided layout.

    The output has length `nfft`:
      - index 0: DC (real)
      - indices 2i-1, 2i: real/imag of bin i, for i = 1..(nfft-1)//2
      - index nfft-1: Nyquist (real), only when nfft is even
    """

    backend: FftBackend

    def transform(self, x: NDArray[np.float64], nfft: int) -> NDArray[np.float64]:
        ...


def pack_one_sided(spectrum: NDArray[np.complex128], nfft: int) -> NDArray[np.float64]:
    """Pack a complex one-sided spectrum (nfft//2 + 1 bins) into nfft reals."""

    spec = np.asarray(spectrum)
    if spec.size != nfft // 2 + 1:
        raise TransformError(
            ReasonCode.TRANSFORM_FAILED,
            f"Backend returned {spec.size} bins, expected {nfft // 2 + 1}",
        )

    out = np.empty(nfft, dtype=np.float64)
    out[0] = spec[0].real

    m = (nfft - 1) // 2
    out[1 : 2 * m : 2] = spec[1 : m + 1].real
    out[2 : 2 * m + 1 : 2] = spec[1 : m + 1].imag

    if nfft % 2 == 0:
        out[nfft - 1] = spec[nfft // 2].real
    return out


def fit_to_length(x: NDArray[np.float64], nfft: int) -> NDArray[np.float64]:
    """Truncate `x` to `nfft` samples if longer, then zero-pad to exactly `nfft`."""
    xx = np.asarray(x, dtype=np.float64)
    return pad_zero(xx[:nfft], nfft)


def fft_workers_from_env() -> int:
    """Thread count for the multi-threaded CPU backend.

    Follows OpenMP's convention: the first entry of OMP_NUM_THREADS, else the
    number of CPUs.
    """
    raw = os.environ.get("OMP_NUM_THREADS", "").strip()
    if raw:
        head = raw.split(",")[0].strip()
        try:
            n = int(head)
        except ValueError:
            n = 0
        if n > 0:
            return n
        logger.warning("Ignoring invalid OMP_NUM_THREADS=%r", raw)
    return os.cpu_count() or 1


@dataclass(frozen=True)
class ScipyFftProvider:
    """CPU backend on scipy.fft (pocketfft); workers > 1 threads the transform."""

    workers: int = 1

    @property
    def backend(self) -> FftBackend:
        return FftBackend.FFTW if self.workers == 1 else FftBackend.FFTW_OPENMP

    def transform(self, x: NDArray[np.float64], nfft: int) -> NDArray[np.float64]:
        padded = fit_to_length(x, nfft)
        spectrum = sp_fft.rfft(padded, n=nfft, workers=self.workers)
        return pack_one_sided(spectrum, nfft)


class CupyFftProvider:
    """Accelerator backend: host -> device copy, cuFFT via cupy, device -> host."""

    backend = FftBackend.CUFFT

    def transform(self, x: NDArray[np.float64], nfft: int) -> NDArray[np.float64]:
        padded = fit_to_length(x, nfft)

        try:
            import cupy as cp
        except ImportError as exc:
            raise TransformError(
                ReasonCode.BACKEND_UNAVAILABLE,
                "cupy is not installed; install the 'gpu' extra to use the cufft backend",
            ) from exc

        with _DEVICE_LOCK:
            try:
                d_x = cp.asarray(padded)
                d_spec = cp.fft.rfft(d_x, n=nfft)
                spectrum = cp.asnumpy(d_spec)
            except Exception as exc:
                raise TransformError(
                    ReasonCode.TRANSFORM_FAILED,
                    f"cufft transform failed: {exc}",
                ) from exc

        return pack_one_sided(spectrum, nfft)


def get_provider(backend: str | FftBackend) -> TransformProvider:
    be = parse_backend(backend)
    if be is FftBackend.FFTW:
        return ScipyFftProvider(workers=1)
    if be is FftBackend.FFTW_OPENMP:
        return ScipyFftProvider(workers=fft_workers_from_env())
    return CupyFftProvider()
