"""Common utilities and models shared across the harness and CLI."""

from common.models.run import RunArtifact, RunResult, WorkloadSeries
from common.models.placement import PlacementMap
from common.models.report import Report
from common.models.experiment import ExperimentConfig, WorkloadSpec

__all__ = [
    "RunArtifact",
    "RunResult",
    "WorkloadSeries",
    "PlacementMap",
    "Report",
    "ExperimentConfig",
    "WorkloadSpec",
]
