from pathlib import Path

import numpy as np
import soundfile as sf


def read_wav_mono(path: str | Path, *, channel: int = 0) -> tuple[np.ndarray, float]:
    """
    Read one channel of a WAV file and return (samples, fs).

    Samples come back as float64 in soundfile's normalized [-1, 1] range.
    """
    p = Path(path)
    data, fs = sf.read(str(p), always_2d=True)
    n_channels = int(data.shape[1])
    if not 0 <= channel < n_channels:
        raise ValueError(
            f"Channel {channel} out of range for {p.name} ({n_channels} channel(s))"
        )
    return np.asarray(data[:, channel], dtype=np.float64), float(fs)
