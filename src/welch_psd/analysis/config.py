from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class WelchConfig:
    """Welch estimate parameters.

    Defaults reproduce the reference run: 16384-sample signal, quarter-length
    segments with half-segment overlap, nfft of half the signal.
    """

    fs: float = 1000.0
    len_segment: int = 4096
    len_overlap: int = 2048
    window: str = "rectangular"
    backend: str = "fftw"
    nfft: int = 8192


@dataclass(frozen=True)
class DemoSignalConfig:
    """Synthetic sine used by the CLI: amplitude * sin(2 pi cycles i / length)."""

    length: int = 16384
    amplitude: float = 5.0
    cycles: float = 1.0


# JSON value types accepted for each dataclass field annotation
_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "float": (int, float),
    "int": (int,),
    "str": (str,),
}


def _check_type(section: str, key: str, value: Any, annotation: str) -> None:
    accepted = _JSON_TYPES[annotation]
    if isinstance(value, bool) or not isinstance(value, accepted):
        raise ValueError(
            f"Config key '{section}.{key}' must be of type {annotation}. Got {value!r}"
        )


def _from_mapping(cls: type, data: Any, section: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Config section '{section}' must be an object. Got {type(data).__name__}")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{section}': {', '.join(unknown)}")
    for f in fields(cls):
        if f.name in data:
            _check_type(section, f.name, data[f.name], str(f.type))
    return cls(**data)


def load_config(path: str | Path) -> tuple[WelchConfig, DemoSignalConfig]:
    """
    Read a JSON config file:

        {"welch": {"nfft": 4095, ...}, "signal": {"length": 16384, ...}}

    Both sections are optional; missing keys keep their defaults.
    """
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {p}")

    unknown = sorted(set(data) - {"welch", "signal"})
    if unknown:
        raise ValueError(f"Unknown config sections: {', '.join(unknown)}")

    welch_cfg = _from_mapping(WelchConfig, data.get("welch"), "welch")
    signal_cfg = _from_mapping(DemoSignalConfig, data.get("signal"), "signal")
    return welch_cfg, signal_cfg
