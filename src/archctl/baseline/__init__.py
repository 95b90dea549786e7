"""Violation baseline and ratchet support."""

from archctl.baseline.store import (
    BaselineError,
    BaselineStore,
    calculate_metrics,
    fingerprint,
)

__all__ = ["BaselineError", "BaselineStore", "calculate_metrics", "fingerprint"]
