"""Measurement adapter interface."""

from __future__ import annotations

from typing import Protocol


class MetricSampler(Protocol):
    """Protocol for CPU utilisation samplers.

    Implementations return the percentage found at ``field`` in the latest
    utilisation row, or raise a
    :class:`~iowait_plugin.domain.errors.MetricUnavailable` subclass.
    """

    async def measure(self, field: int) -> float:
        """Return the current value of the column at position ``field``."""
        raise NotImplementedError
