from __future__ import annotations

import os
import sys
from types import SimpleNamespace

import numpy as np
import pytest

from welch_psd.domain.enums import FftBackend
from welch_psd.domain.errors import InvalidParameterError, TransformError
from welch_psd.domain.reason_codes import ReasonCode
from welch_psd.dsp.transforms import (
    CupyFftProvider,
    ScipyFftProvider,
    fft_workers_from_env,
    fit_to_length,
    get_provider,
    pack_one_sided,
)


def _expected_packing(x: np.ndarray, nfft: int) -> np.ndarray:
    # Reference layout built bin by bin from numpy's rfft.
    spec = np.fft.rfft(x, n=nfft)
    out = [spec[0].real]
    for i in range(1, (nfft - 1) // 2 + 1):
        out.extend([spec[i].real, spec[i].imag])
    if nfft % 2 == 0:
        out.append(spec[nfft // 2].real)
    return np.asarray(out)


@pytest.mark.parametrize("nfft", [1, 2, 7, 8, 15, 64])
def test_pack_one_sided_layout(nfft: int, rng: np.random.Generator) -> None:
    x = rng.standard_normal(nfft)
    packed = pack_one_sided(np.fft.rfft(x), nfft)
    assert packed.shape == (nfft,)
    np.testing.assert_allclose(packed, _expected_packing(x, nfft), rtol=0, atol=1e-12)


def test_pack_one_sided_even_has_real_nyquist_last() -> None:
    x = np.asarray([1.0, -1.0, 1.0, -1.0])
    packed = pack_one_sided(np.fft.rfft(x), 4)
    # alternating signal: all energy in the Nyquist bin
    np.testing.assert_allclose(packed, [0.0, 0.0, 0.0, 4.0], atol=1e-12)


def test_pack_one_sided_rejects_wrong_bin_count() -> None:
    with pytest.raises(TransformError):
        pack_one_sided(np.zeros(3, dtype=complex), 8)


def test_fit_to_length_truncates_then_pads() -> None:
    assert fit_to_length(np.arange(6.0), 4).tolist() == [0.0, 1.0, 2.0, 3.0]
    assert fit_to_length(np.arange(2.0), 4).tolist() == [0.0, 1.0, 0.0, 0.0]


@pytest.mark.parametrize("n, nfft", [(16, 16), (10, 16), (10, 15), (20, 16)])
def test_scipy_provider_matches_reference(n: int, nfft: int, rng: np.random.Generator) -> None:
    x = rng.standard_normal(n)
    out = ScipyFftProvider().transform(x, nfft)
    expected = _expected_packing(x[:nfft], nfft)
    np.testing.assert_allclose(out, expected, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("nfft", [4096, 4095])
def test_cpu_backends_are_interchangeable(nfft: int, rng: np.random.Generator) -> None:
    x = rng.standard_normal(3000)
    single = ScipyFftProvider(workers=1).transform(x, nfft)
    multi = ScipyFftProvider(workers=4).transform(x, nfft)
    np.testing.assert_allclose(multi, single, rtol=1e-9, atol=1e-9)


def test_scipy_provider_backend_follows_workers() -> None:
    assert ScipyFftProvider().backend is FftBackend.FFTW
    assert ScipyFftProvider(workers=1).backend is FftBackend.FFTW
    assert ScipyFftProvider(workers=4).backend is FftBackend.FFTW_OPENMP


def test_get_provider_openmp_with_one_thread_reports_fftw(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("OMP_NUM_THREADS", "1")
    provider = get_provider(FftBackend.FFTW_OPENMP)
    assert provider.workers == 1
    assert provider.backend is FftBackend.FFTW


def test_get_provider_dispatch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OMP_NUM_THREADS", "3")

    single = get_provider("fftw")
    assert isinstance(single, ScipyFftProvider)
    assert single.backend is FftBackend.FFTW
    assert single.workers == 1

    multi = get_provider(FftBackend.FFTW_OPENMP)
    assert isinstance(multi, ScipyFftProvider)
    assert multi.backend is FftBackend.FFTW_OPENMP
    assert multi.workers == 3

    assert isinstance(get_provider("cufft"), CupyFftProvider)


def test_get_provider_unknown_backend() -> None:
    with pytest.raises(InvalidParameterError) as exc_info:
        get_provider("mkl")
    assert exc_info.value.reason == ReasonCode.UNKNOWN_BACKEND


@pytest.mark.parametrize("raw, expected", [("4", 4), ("6,2", 6), (" 2 ", 2)])
def test_fft_workers_from_env(raw: str, expected: int, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OMP_NUM_THREADS", raw)
    assert fft_workers_from_env() == expected


@pytest.mark.parametrize("raw", ["", "zero", "0", "-3"])
def test_fft_workers_from_env_falls_back_to_cpu_count(
    raw: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OMP_NUM_THREADS", raw)
    assert fft_workers_from_env() == (os.cpu_count() or 1)


def test_cupy_provider_without_cupy(monkeypatch: pytest.MonkeyPatch) -> None:
    # A None entry in sys.modules makes `import cupy` raise ImportError.
    monkeypatch.setitem(sys.modules, "cupy", None)
    with pytest.raises(TransformError) as exc_info:
        CupyFftProvider().transform(np.ones(8), 8)
    assert exc_info.value.reason == ReasonCode.BACKEND_UNAVAILABLE


def _fake_cupy(fft: object) -> SimpleNamespace:
    # host arrays stand in for device arrays
    return SimpleNamespace(asarray=np.asarray, asnumpy=np.asarray, fft=fft)


@pytest.mark.parametrize("nfft", [4096, 4095])
def test_cupy_provider_matches_cpu_backend(
    nfft: int, rng: np.random.Generator, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setitem(sys.modules, "cupy", _fake_cupy(np.fft))
    x = rng.standard_normal(3000)

    out = CupyFftProvider().transform(x, nfft)
    expected = ScipyFftProvider().transform(x, nfft)
    assert out.shape == (nfft,)
    np.testing.assert_allclose(out, expected, rtol=1e-9, atol=1e-9)


def test_cupy_provider_truncates_long_segments(
    rng: np.random.Generator, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setitem(sys.modules, "cupy", _fake_cupy(np.fft))
    x = rng.standard_normal(40)
    out = CupyFftProvider().transform(x, 32)
    np.testing.assert_allclose(out, _expected_packing(x[:32], 32), rtol=1e-12, atol=1e-12)


def test_cupy_provider_device_error_is_a_transform_failure(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def rfft(a: np.ndarray, n: int) -> np.ndarray:
        raise RuntimeError("CUFFT_EXEC_FAILED")

    monkeypatch.setitem(sys.modules, "cupy", _fake_cupy(SimpleNamespace(rfft=rfft)))
    with pytest.raises(TransformError) as exc_info:
        CupyFftProvider().transform(np.ones(8), 8)
    assert exc_info.value.reason == ReasonCode.TRANSFORM_FAILED
    assert "CUFFT_EXEC_FAILED" in exc_info.value.message
