"""Consolidated benchmark report."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from common.models.placement import PlacementMap
from common.models.run import RunResult, WorkloadSeries


PLACEMENTS_KEY = "placements"


class Report(BaseModel):
    """Placement snapshot plus one series per workload, in execution order."""
    placements: PlacementMap = Field(default_factory=PlacementMap)
    workloads: dict[str, WorkloadSeries] = Field(default_factory=dict)

    def add_series(self, series: WorkloadSeries) -> None:
        if series.label == PLACEMENTS_KEY:
            raise ValueError(f"Workload label '{PLACEMENTS_KEY}' is reserved")
        self.workloads[series.label] = series

    def to_json(self) -> dict[str, Any]:
        """Canonical document: placements first, then workloads in order."""
        document: dict[str, Any] = {PLACEMENTS_KEY: self.placements.to_json()}
        for label, series in self.workloads.items():
            document[label] = series.to_json()
        return document

    def dumps(self, indent: int = 4) -> str:
        return json.dumps(self.to_json(), indent=indent, ensure_ascii=False) + "\n"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Report":
        report = cls(placements=PlacementMap.from_json(data.get(PLACEMENTS_KEY, {})))
        for label, runs in data.items():
            if label == PLACEMENTS_KEY:
                continue
            report.add_series(
                WorkloadSeries(label=label, runs=[RunResult(**run) for run in runs])
            )
        return report

    @classmethod
    def loads(cls, text: str) -> "Report":
        return cls.from_json(json.loads(text))
