"""Run artifacts, health verdicts and per-repetition results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_serializer


# Sentinel for percentile/throughput fields that could not be parsed
NA = "na"


class WorkerSamples(BaseModel):
    """Raw end-to-end latency samples written by one load-generator worker."""
    worker: int = Field(..., ge=0, description="Worker (thread) index")
    path: Path = Field(..., description="Sample file the values were read from")
    samples: list[int] = Field(default_factory=list, description="Latency samples in microseconds")

    @property
    def has_numeric(self) -> bool:
        """Check if the file held at least one pure-integer line."""
        return bool(self.samples)


class RunArtifact(BaseModel):
    """Everything one load-generator invocation left behind.

    Built once when the invocation exits and passed by reference to the
    health classifier and the stats extractor, so the run directory is
    scanned exactly once.
    """
    run_dir: Path
    summary_text: str = ""
    workers: list[WorkerSamples] = Field(default_factory=list)
    exit_code: int = 0
    finished_at: datetime

    @property
    def worker_file_count(self) -> int:
        return len(self.workers)

    @property
    def has_numeric_samples(self) -> bool:
        return any(w.has_numeric for w in self.workers)

    @property
    def pooled_samples(self) -> list[int]:
        """All samples concatenated in ascending worker order."""
        pooled: list[int] = []
        for worker in sorted(self.workers, key=lambda w: w.worker):
            pooled.extend(worker.samples)
        return pooled


class HealthVerdict(BaseModel):
    """Healthy/unhealthy decision with the signals it was derived from."""
    healthy: bool
    non_2xx: int = Field(default=0, description="Non-2xx/3xx responses reported")
    worker_files: int = Field(default=0, description="Per-worker sample files found")
    expected_workers: int = Field(default=0, description="Configured thread count")
    has_numeric_samples: bool = False
    exit_code: int = 0
    reasons: list[str] = Field(default_factory=list)

    def describe(self) -> str:
        """One-line diagnostic summary."""
        return (
            f"Non-2xx={self.non_2xx}, threads={self.worker_files}/{self.expected_workers}, "
            f"numbers={int(self.has_numeric_samples)}, exit={self.exit_code}"
        )


class RunResult(BaseModel):
    """Durable record of one workload repetition.

    Field order is the report's field order. In JSON the median is
    written with exactly three decimals (``"20.000"``), or ``"0"`` when
    there were no samples.
    """
    timestamp: str = Field(..., description="UTC ISO-8601 timestamp")
    threads: int
    conns: int
    duration: str
    rps_target: int
    rps_observed: str = NA
    p50: str = NA
    p90: str = NA
    p99: str = NA
    p999: str = NA
    e2e_median: float = 0
    e2e_vals: list[int] = Field(default_factory=list)

    @field_serializer("e2e_median", when_used="json")
    def serialize_median(self, value: float) -> str:
        if not self.e2e_vals:
            return "0"
        return f"{value:.3f}"


class RetryStatus(str, Enum):
    """How a retry loop ended."""
    HEALTHY = "healthy"
    EXHAUSTED = "exhausted"


class RetryOutcome(BaseModel):
    """Terminal result of the retry state machine."""
    status: RetryStatus
    artifact: RunArtifact
    verdict: HealthVerdict
    attempts: int = Field(..., ge=1)

    @property
    def healthy(self) -> bool:
        return self.status == RetryStatus.HEALTHY


class WorkloadSeries(BaseModel):
    """Ordered repetitions of one named workload."""
    label: str
    runs: list[RunResult] = Field(default_factory=list)

    # In-memory bookkeeping, never written to the report
    attempts: list[int] = Field(default_factory=list, exclude=True)
    unhealthy_runs: list[int] = Field(default_factory=list, exclude=True)

    def append(self, result: RunResult, outcome: Optional[RetryOutcome] = None) -> None:
        """Append a repetition, healthy or not."""
        self.runs.append(result)
        if outcome is not None:
            self.attempts.append(outcome.attempts)
            if not outcome.healthy:
                self.unhealthy_runs.append(len(self.runs))

    @property
    def is_reliable(self) -> bool:
        return not self.unhealthy_runs

    def to_json(self) -> list[dict]:
        return [run.model_dump(mode="json") for run in self.runs]
