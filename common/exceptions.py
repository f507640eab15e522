"""Exceptions raised by the benchmark harness.

Only conditions that make a complete report impossible are raised.
Unhealthy runs and parse misses are handled locally and never surface here.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for fatal benchmark execution errors."""


class MissingToolError(BenchmarkError):
    """A required external executable is not available."""

    def __init__(self, tool: str, hint: str = ""):
        self.tool = tool
        message = f"Missing command: {tool}"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)


class LivenessTimeoutError(BenchmarkError):
    """The target application never answered the liveness probe in time."""

    def __init__(self, url: str, timeout_seconds: float, last_status: str = "none"):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.last_status = last_status
        super().__init__(
            f"Service at {url} not ready after {timeout_seconds:g}s (last status: {last_status})"
        )


class ConfigError(BenchmarkError):
    """The experiment configuration could not be loaded or is invalid."""
