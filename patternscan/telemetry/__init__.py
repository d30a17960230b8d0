"""Telemetry sinks for scan counters."""

from patternscan.telemetry.inmemory import InMemoryTelemetry

__all__ = ["InMemoryTelemetry"]
