from __future__ import annotations

from enum import StrEnum


class WelchStatus(StrEnum):
    """Outcome label of one Welch estimate call."""

    SUCCESS = "success"
    FAILURE = "failure"
