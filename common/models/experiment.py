"""Experiment configuration models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from common.models.report import PLACEMENTS_KEY
from common.utils import parse_duration


def _validate_duration(v: str) -> str:
    parse_duration(v)
    return str(v).strip()


class LoadParams(BaseModel):
    """Load-generator parameters shared by every workload."""
    threads: int = Field(default=4, ge=1, description="Worker threads (-t)")
    connections: int = Field(default=64, ge=1, description="Open connections (-c)")
    duration: str = Field(default="30s", description="Run duration (-d)")
    rate: int = Field(default=1000, ge=1, description="Target requests/sec (-R)")
    distribution: str = Field(default="exp", description="Inter-arrival distribution (-D)")

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _validate_duration(v)

    @model_validator(mode="after")
    def check_connections(self):
        """wrk2 needs at least one connection per thread."""
        if self.connections < self.threads:
            raise ValueError(
                f"connections ({self.connections}) must be >= threads ({self.threads})"
            )
        return self


class RetryPolicy(BaseModel):
    """Bounded retry with fixed backoff for unhealthy runs."""
    max_retries: int = Field(default=4, ge=0, description="Retries after the first attempt")
    backoff_seconds: float = Field(default=5, ge=0, description="Sleep between attempts")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class WarmupConfig(BaseModel):
    """Untracked warm-up invocation before measured repetitions."""
    enabled: bool = True
    duration: str = Field(default="10s")
    rate_cap: int = Field(default=100, ge=1, description="Upper bound for warm-up rate")

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _validate_duration(v)

    def rate_for(self, target_rate: int) -> int:
        return min(target_rate, self.rate_cap)


class LivenessConfig(BaseModel):
    """Registration-style HTTP probe polled before any workload runs."""
    enabled: bool = True
    base_url: str = "http://localhost:8080"
    register_path: str = "/wrk2-api/user/register"
    interval_seconds: float = Field(default=3, gt=0)
    timeout_seconds: float = Field(default=180, gt=0)
    request_timeout_seconds: float = Field(default=3, gt=0)

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.register_path.lstrip('/')}"


class OrchestratorKind(str, Enum):
    """Supported orchestrators."""
    SWARM = "swarm"
    KUBERNETES = "kubernetes"


class OrchestratorConfig(BaseModel):
    """Where placement data comes from."""
    kind: OrchestratorKind = Field(default=OrchestratorKind.SWARM)
    stack_name: str = Field(default="socialnet", description="Docker stack name (swarm)")
    namespace: Optional[str] = Field(default=None, description="Kubernetes namespace (default: current)")
    service_label: str = Field(default="service", description="Pod label holding the service name")
    command_timeout_seconds: int = Field(default=60, ge=1)

    @property
    def required_tool(self) -> str:
        return "kubectl" if self.kind == OrchestratorKind.KUBERNETES else "docker"


class WorkloadSpec(BaseModel):
    """A named endpoint/script pair."""
    label: str = Field(..., min_length=1)
    url: str = Field(..., description="Target URL")
    script: Path = Field(..., description="Load-generator Lua script")


class ExperimentConfig(BaseModel):
    """Complete experiment configuration."""
    name: str = "social-network"
    load: LoadParams = Field(default_factory=LoadParams)
    runs_per_workload: int = Field(default=3, ge=1)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    warmup: WarmupConfig = Field(default_factory=WarmupConfig)
    liveness: LivenessConfig = Field(default_factory=LivenessConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)

    run_root: Path = Field(default=Path("runs"), description="Parent of per-run directories")
    output_path: Path = Field(default=Path("social-net-results.json"))
    clean_run_dirs_on_start: bool = True

    workloads: list[WorkloadSpec] = Field(default_factory=list)

    @field_validator("workloads")
    @classmethod
    def validate_labels(cls, v):
        labels = [w.label for w in v]
        if PLACEMENTS_KEY in labels:
            raise ValueError(f"Workload label '{PLACEMENTS_KEY}' is reserved")
        duplicates = sorted({label for label in labels if labels.count(label) > 1})
        if duplicates:
            raise ValueError(f"Duplicate workload labels: {', '.join(duplicates)}")
        return v


def default_workloads(
    base_url: str = "http://localhost:8080",
    script_dir: Path = Path("wrk2/scripts/social-network"),
    include_mixed: bool = False,
) -> list[WorkloadSpec]:
    """The social-network endpoints exercised by default."""
    base_url = base_url.rstrip("/")
    workloads = [
        WorkloadSpec(
            label="compose-post",
            url=f"{base_url}/wrk2-api/post/compose",
            script=script_dir / "compose-post.lua",
        ),
        WorkloadSpec(
            label="read-home-timelines",
            url=f"{base_url}/wrk2-api/home-timeline/read",
            script=script_dir / "read-home-timeline.lua",
        ),
        WorkloadSpec(
            label="read-user-timelines",
            url=f"{base_url}/wrk2-api/user-timeline/read",
            script=script_dir / "read-user-timeline.lua",
        ),
    ]
    if include_mixed:
        workloads.append(
            WorkloadSpec(
                label="mixed-workload",
                url=f"{base_url}/wrk2-api/mixed-workload",
                script=script_dir / "mixed-workload.lua",
            )
        )
    return workloads


def default_experiment(kind: OrchestratorKind = OrchestratorKind.SWARM) -> ExperimentConfig:
    """Return the default social-network experiment for an orchestrator."""
    if kind == OrchestratorKind.KUBERNETES:
        return ExperimentConfig(
            name="k8s-social-network",
            orchestrator=OrchestratorConfig(kind=kind),
            output_path=Path("k8s-default-snet-results.json"),
            clean_run_dirs_on_start=False,
            workloads=default_workloads(include_mixed=True),
        )
    return ExperimentConfig(
        name="swarm-social-network",
        orchestrator=OrchestratorConfig(kind=kind),
        output_path=Path("social-net-swarm-results.json"),
        workloads=default_workloads(),
    )
