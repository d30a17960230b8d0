"""In-memory telemetry sink.

Collects the matcher's scan counters and durations so tests and the CLI can
read them back after a run.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field

Labels = tuple[tuple[str, str], ...]


@dataclass
class InMemoryTelemetry:
    """Counters and timings keyed by metric name plus labels."""

    counters: Counter[str] = field(default_factory=Counter)
    timings: dict[str, list[float]] = field(default_factory=lambda: defaultdict(list))

    def incr(self, name: str, value: int = 1, labels: Labels = ()) -> None:
        self.counters[self._make_key(name, labels)] += value

    def timing(self, name: str, value: float, labels: Labels = ()) -> None:
        """Record a duration in seconds."""
        self.timings[self._make_key(name, labels)].append(value)

    @staticmethod
    def _make_key(name: str, labels: Labels | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in labels)
        return f"{name}{{{label_str}}}"

    def get_counter(self, name: str, labels: Labels = ()) -> int:
        return int(self.counters[self._make_key(name, labels)])

    def get_timing_values(self, name: str, labels: Labels = ()) -> list[float]:
        return list(self.timings.get(self._make_key(name, labels), ()))

    def total_time(self, name: str, labels: Labels = ()) -> float:
        """Sum of every recorded duration for *name*; 0.0 when none."""
        return sum(self.get_timing_values(name, labels))

    def reset(self) -> None:
        self.counters.clear()
        self.timings.clear()
