"""Error types shared across the distribution detachment package."""

from __future__ import annotations


class DetachError(RuntimeError):
    """Raised when detaching, staging, or signing distributions cannot continue."""
