"""Port interfaces the scanner core depends on."""

from __future__ import annotations

from typing import Protocol


class CancelSignal(Protocol):
    """Cooperative cancellation flag checked between targets.

    ``threading.Event`` and ``asyncio.Event`` both satisfy it.
    """

    def is_set(self) -> bool:
        """Return True once the host asked the scan to stop."""


class TelemetryPort(Protocol):
    """Counter telemetry sink."""

    def incr(self, name: str, value: int = 1, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Increase named counter with optional labels."""

    def timing(self, name: str, value: float, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Record a duration in seconds."""
