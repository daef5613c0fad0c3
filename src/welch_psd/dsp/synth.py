import numpy as np


def make_sine(length: int, *, amplitude: float = 5.0, cycles: float = 1.0) -> np.ndarray:
    """`amplitude * sin(2 pi cycles i / length)` for i in [0, length)."""
    i = np.arange(int(length), dtype=np.float64)
    return float(amplitude) * np.sin(2.0 * np.pi * float(cycles) * i / float(length))
