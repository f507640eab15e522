"""Assemble the consolidated report from placements and workload series."""

from __future__ import annotations

import logging
from typing import Iterable

from common.models.placement import PlacementMap
from common.models.report import Report
from common.models.run import WorkloadSeries

logger = logging.getLogger(__name__)


class ReportBuilder:
    """Collect workload series in execution order and build a Report."""

    def __init__(self):
        self._series: list[WorkloadSeries] = []

    def add(self, series: WorkloadSeries) -> None:
        self._series.append(series)

    def build(
        self,
        placements: PlacementMap,
        series: Iterable[WorkloadSeries] = (),
    ) -> Report:
        """Build the report: placements first, then workloads in the order added."""
        report = Report(placements=placements)
        for entry in [*self._series, *series]:
            if entry.label in report.workloads:
                raise ValueError(f"Duplicate workload label in report: {entry.label}")
            report.add_series(entry)

        logger.info(
            f"[report] Built report with {len(report.placements)} node(s) and "
            f"{len(report.workloads)} workload(s)"
        )
        return report
