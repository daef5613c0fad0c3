from __future__ import annotations

import os

os.environ.setdefault("MPLBACKEND", "Agg")

import argparse
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

import numpy as np

from welch_psd.analysis.config import DemoSignalConfig, WelchConfig, load_config
from welch_psd.analysis.welch import estimate_psd
from welch_psd.domain.enums import FftBackend, WindowType
from welch_psd.domain.results import WelchOutcome
from welch_psd.dsp.synth import make_sine
from welch_psd.io.wav_reader import read_wav_mono
from welch_psd.reporting.plots import plot_psd

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="welch-psd",
        description="Estimate the PSD of a signal with Welch's method and time the run.",
    )
    parser.add_argument("--config", type=Path, help="JSON config with 'welch' / 'signal' sections")

    src = parser.add_argument_group("signal")
    src.add_argument("--wav", type=Path, help="Read the signal from a WAV file instead of a sine")
    src.add_argument("--channel", type=int, default=0, help="WAV channel index (default: 0)")
    src.add_argument("--length", type=int, help="Sine length in samples")
    src.add_argument("--amplitude", type=float, help="Sine amplitude")
    src.add_argument("--cycles", type=float, help="Sine periods over the whole signal")

    est = parser.add_argument_group("estimate")
    est.add_argument("--fs", type=float, help="Sampling frequency in Hz")
    est.add_argument("--segment", type=int, dest="len_segment", help="Segment length")
    est.add_argument("--overlap", type=int, dest="len_overlap", help="Overlap length")
    est.add_argument("--nfft", type=int, help="Number of FFT points")
    est.add_argument("--window", help=f"Window type ({', '.join(w.value for w in WindowType)})")
    est.add_argument("--backend", help=f"FFT backend ({', '.join(b.value for b in FftBackend)})")

    parser.add_argument(
        "--threads",
        type=int,
        default=1,
        help="Run this many independent estimates concurrently (default: 1)",
    )
    parser.add_argument("--plot", type=Path, help="Write a PNG plot of the first estimate")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _apply_overrides(
    args: argparse.Namespace, welch_cfg: WelchConfig, signal_cfg: DemoSignalConfig
) -> tuple[WelchConfig, DemoSignalConfig]:
    welch_over = {
        k: getattr(args, k)
        for k in ("fs", "len_segment", "len_overlap", "nfft", "window", "backend")
        if getattr(args, k) is not None
    }
    signal_over = {
        k: getattr(args, k)
        for k in ("length", "amplitude", "cycles")
        if getattr(args, k) is not None
    }
    return replace(welch_cfg, **welch_over), replace(signal_cfg, **signal_over)


def _timed_estimate(signal: np.ndarray, cfg: WelchConfig) -> tuple[WelchOutcome, float]:
    tic = time.perf_counter()
    outcome = estimate_psd(
        signal,
        fs=cfg.fs,
        len_segment=cfg.len_segment,
        len_overlap=cfg.len_overlap,
        nfft=cfg.nfft,
        window=cfg.window,
        backend=cfg.backend,
    )
    return outcome, time.perf_counter() - tic


def _report(outcome: WelchOutcome, elapsed_s: float, prefix: str) -> None:
    if outcome.ok and outcome.result is not None:
        res = outcome.result
        print(f"{prefix}Welch method completed in {elapsed_s:.8f} seconds.")
        print(f"{prefix}lenPxx = {res.len_pxx}, peak at {res.peak_frequency:.6f} Hz")
    else:
        print(f"{prefix}Welch method failed. ({outcome.reason})")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.threads < 1:
        parser.error(f"--threads must be >= 1. Got {args.threads}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        welch_cfg, signal_cfg = WelchConfig(), DemoSignalConfig()
        if args.config is not None:
            welch_cfg, signal_cfg = load_config(args.config)
        welch_cfg, signal_cfg = _apply_overrides(args, welch_cfg, signal_cfg)

        if args.wav is not None:
            signal, wav_fs = read_wav_mono(args.wav, channel=args.channel)
            if args.fs is None:
                welch_cfg = replace(welch_cfg, fs=wav_fs)
        else:
            signal = make_sine(
                signal_cfg.length,
                amplitude=signal_cfg.amplitude,
                cycles=signal_cfg.cycles,
            )
    except (OSError, RuntimeError, ValueError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "signal: %d samples, fs=%g Hz, segment=%d, overlap=%d, nfft=%d, backend=%s",
        signal.size,
        welch_cfg.fs,
        welch_cfg.len_segment,
        welch_cfg.len_overlap,
        welch_cfg.nfft,
        welch_cfg.backend,
    )

    try:
        if args.threads == 1:
            runs = [_timed_estimate(signal, welch_cfg)]
        else:
            # each run gets its own copy of the signal and its own buffers
            pool = ThreadPoolExecutor(max_workers=args.threads)
            try:
                futures = [
                    pool.submit(_timed_estimate, signal.copy(), welch_cfg)
                    for _ in range(args.threads)
                ]
                runs = [fut.result() for fut in futures]
            except KeyboardInterrupt:
                # queued runs are dropped; running ones finish in the background
                pool.shutdown(wait=False, cancel_futures=True)
                raise
            pool.shutdown()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130

    for tid, (outcome, elapsed_s) in enumerate(runs):
        prefix = f"Thread {tid}: " if args.threads > 1 else ""
        _report(outcome, elapsed_s, prefix)

    if args.plot is not None:
        first = next((o.result for o, _ in runs if o.ok and o.result is not None), None)
        if first is None:
            logger.warning("No successful estimate; skipping plot")
        else:
            try:
                out = plot_psd(first, args.plot)
            except OSError as exc:
                print(f"Error: could not write plot: {exc}", file=sys.stderr)
                return 1
            print(f"Wrote plot to: {out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
