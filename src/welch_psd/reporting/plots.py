from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from welch_psd.domain.results import PsdResult


def plot_psd(
    result: PsdResult,
    out_png: Path,
    *,
    title: str | None = None,
    log_scale: bool = True,
) -> Path:
    """Plot a Welch PSD estimate against its frequency axis and save it as PNG."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    f = np.asarray(result.frequency, dtype=float)
    p = np.asarray(result.psd, dtype=float)

    fig = plt.figure(figsize=(10, 4.2))
    ax = fig.add_subplot(1, 1, 1)

    if log_scale:
        # zero bins would vanish from a log axis; floor them at the smallest positive value
        positive = p[p > 0]
        floor = float(positive.min()) if positive.size else 1.0
        ax.semilogy(f, np.maximum(p, floor), lw=0.9)
    else:
        ax.plot(f, p, lw=0.9)

    peak_hz = result.peak_frequency
    ax.axvline(peak_hz, lw=1.0, linestyle="--", alpha=0.6, label=f"peak {peak_hz:.3f} Hz")

    if title is None:
        title = (
            f"Welch PSD  nfft={result.nfft}  segments={result.num_segments}  "
            f"backend={result.backend}"
        )
    ax.set_title(title)
    ax.set_xlabel("Frequency (Hz)")
    ax.set_ylabel("PSD (units²/Hz)")
    ax.grid(True, alpha=0.25)
    ax.legend(loc="best", fontsize=9)

    fig.tight_layout()
    fig.savefig(out_png, dpi=160)
    plt.close(fig)
    return out_png
