"""Common data models for the social-network benchmark harness."""

from common.models.run import (
    NA,
    WorkerSamples,
    RunArtifact,
    HealthVerdict,
    RunResult,
    RetryStatus,
    RetryOutcome,
    WorkloadSeries,
)
from common.models.placement import ClusterNode, TaskAssignment, PlacementMap
from common.models.report import Report
from common.models.experiment import (
    LoadParams,
    RetryPolicy,
    WarmupConfig,
    LivenessConfig,
    OrchestratorKind,
    OrchestratorConfig,
    WorkloadSpec,
    ExperimentConfig,
    default_experiment,
)

__all__ = [
    "NA",
    "WorkerSamples",
    "RunArtifact",
    "HealthVerdict",
    "RunResult",
    "RetryStatus",
    "RetryOutcome",
    "WorkloadSeries",
    "ClusterNode",
    "TaskAssignment",
    "PlacementMap",
    "Report",
    "LoadParams",
    "RetryPolicy",
    "WarmupConfig",
    "LivenessConfig",
    "OrchestratorKind",
    "OrchestratorConfig",
    "WorkloadSpec",
    "ExperimentConfig",
    "default_experiment",
]
