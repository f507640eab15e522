"""Statistics extraction from load-generator output.

Line patterns understood (wrk2 text summary)::

    50.000%    12.34ms            percentile lines (50, 90, 99, 99.9)
    Requests/sec:    998.20       observed throughput
    Non-2xx or 3xx responses: 17  optional error counter

Per-worker sample files hold one latency sample (a non-negative integer,
microseconds) per line; any other line is ignored.

Nothing here raises on malformed output: missing values become the ``"na"``
sentinel, and missing samples an empty list with a median of 0.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from common.models.experiment import LoadParams
from common.models.run import NA, RunArtifact, RunResult
from common.utils import utc_timestamp

PERCENTILE_LABELS = {
    "p50": "50.000",
    "p90": "90.000",
    "p99": "99.000",
    "p999": "99.900",
}

_PERCENTILE_PATTERNS = {
    field: re.compile(rf"^[ \t]*{re.escape(label)}%[ \t]+(\S+)", re.MULTILINE)
    for field, label in PERCENTILE_LABELS.items()
}
_THROUGHPUT_PATTERN = re.compile(r"Requests/sec:[ \t]*(\S*)")
_NON_2XX_PATTERN = re.compile(r"Non-2xx or 3xx responses:[ \t]*(\S*)")
_SAMPLE_PATTERN = re.compile(r"[0-9]+")


def parse_percentiles(summary_text: str) -> dict[str, str]:
    """Return p50/p90/p99/p999 tokens verbatim, ``"na"`` when absent."""
    percentiles = {}
    for field, pattern in _PERCENTILE_PATTERNS.items():
        match = pattern.search(summary_text)
        percentiles[field] = match.group(1) if match else NA
    return percentiles


def parse_throughput(summary_text: str) -> str:
    """Return the ``Requests/sec`` value as printed, ``"na"`` when absent."""
    match = _THROUGHPUT_PATTERN.search(summary_text)
    if not match or not match.group(1).strip():
        return NA
    return match.group(1).strip()


def parse_non_2xx(summary_text: str) -> Optional[int]:
    """Return the non-2xx/3xx response count.

    An absent line means zero. ``None`` means the line exists but its
    value is not an integer.
    """
    match = _NON_2XX_PATTERN.search(summary_text)
    if not match:
        return 0
    value = match.group(1).strip()
    if not value.isdigit():
        return None
    return int(value)


def parse_sample_lines(lines: Iterable[str]) -> list[int]:
    """Keep the lines that are a pure non-negative integer, in order."""
    samples = []
    for line in lines:
        line = line.strip()
        if _SAMPLE_PATTERN.fullmatch(line):
            samples.append(int(line))
    return samples


def pooled_median(samples: Iterable[int]) -> float:
    """Median of the pooled sample set, rounded to 3 decimals (0 if empty)."""
    ordered = sorted(samples)
    count = len(ordered)
    if count == 0:
        return 0
    middle = count // 2
    if count % 2 == 1:
        value = float(ordered[middle])
    else:
        value = (ordered[middle - 1] + ordered[middle]) / 2
    return round(value, 3)


class StatsExtractor:
    """Turn a run artifact into a RunResult for the configured load."""

    def __init__(self, load: LoadParams):
        self.load = load

    def extract(self, artifact: RunArtifact) -> RunResult:
        percentiles = parse_percentiles(artifact.summary_text)
        samples = artifact.pooled_samples

        return RunResult(
            timestamp=utc_timestamp(artifact.finished_at),
            threads=self.load.threads,
            conns=self.load.connections,
            duration=self.load.duration,
            rps_target=self.load.rate,
            rps_observed=parse_throughput(artifact.summary_text),
            p50=percentiles["p50"],
            p90=percentiles["p90"],
            p99=percentiles["p99"],
            p999=percentiles["p999"],
            e2e_median=pooled_median(samples),
            e2e_vals=samples,
        )
