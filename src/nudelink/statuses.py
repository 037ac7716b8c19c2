"""Status enumerations for cleaning results."""

from __future__ import annotations

from enum import StrEnum


class CleanError(StrEnum):
    """Error kinds reported in a CleanResult."""
    INVALID_URL = "invalid_url"
    RULES_UNAVAILABLE = "rules_unavailable"


class Engine(StrEnum):
    """Which cleaner the caller runs."""
    HEURISTIC = "heuristic"
    RULES = "rules"
    BOTH = "both"
