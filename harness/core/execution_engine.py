"""Execution engine for end-to-end benchmark runs."""

from __future__ import annotations

import logging
from typing import Optional

from common.models.experiment import ExperimentConfig
from common.models.placement import PlacementMap
from common.models.report import Report
from common.utils import ensure_dir, format_duration, generate_id, reset_dir, Timer
from harness.config import Settings, get_settings
from harness.core.report import ReportBuilder
from harness.core.retry import RetryController
from harness.core.series import WorkloadSeriesRunner
from harness.core.stats import StatsExtractor
from harness.core.workload_runner import WorkloadRunner
from harness.placement.base import PlacementSource
from harness.placement.factory import create_placement_source
from harness.prechecks.liveness import LivenessProbe
from harness.prechecks.tools import require_tools
from harness.storage.report_store import ReportStore

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Run every configured workload, snapshot placements, write the report.

    Steps run strictly one after another: prechecks, run-root preparation,
    liveness, one series per workload, placement snapshot, report.
    Missing tools and a liveness timeout abort before anything is written.
    """

    def __init__(
        self,
        experiment: ExperimentConfig,
        settings: Optional[Settings] = None,
        placement_source: Optional[PlacementSource] = None,
        liveness_probe: Optional[LivenessProbe] = None,
        runner: Optional[WorkloadRunner] = None,
    ):
        self.experiment = experiment
        self.settings = settings or get_settings()
        self.execution_id = generate_id("snb")

        self.run_root = self.settings.resolve(experiment.run_root)
        self.output_path = self.settings.resolve(experiment.output_path)

        self.runner = runner or WorkloadRunner(
            wrk_binary=self.settings.wrk_binary,
            load=experiment.load,
            run_root=self.run_root,
            base_dir=self.settings.data_path,
        )
        self.placement_source = placement_source or create_placement_source(
            experiment.orchestrator,
            use_sudo=self.settings.use_sudo,
        )
        self.liveness_probe = liveness_probe or LivenessProbe(experiment.liveness)
        self.store = ReportStore(self.output_path)

    def required_tools(self) -> list[str]:
        return [self.runner.wrk_binary, self.experiment.orchestrator.required_tool]

    def build_series_runner(self) -> WorkloadSeriesRunner:
        load = self.experiment.load
        return WorkloadSeriesRunner(
            runner=self.runner,
            retry=RetryController(self.runner, self.experiment.retry, load.threads),
            extractor=StatsExtractor(load),
            load=load,
            warmup=self.experiment.warmup,
            repetitions=self.experiment.runs_per_workload,
        )

    async def run(self) -> Report:
        """Run a complete execution and return the written report."""
        experiment = self.experiment
        logger.info(
            f"Starting execution {self.execution_id}: {experiment.name} "
            f"({len(experiment.workloads)} workload(s) x {experiment.runs_per_workload} run(s))"
        )

        with Timer() as timer:
            # Phase 1: Prechecks
            require_tools(self.required_tools())
            logger.info("[prechecks] Required tools available")

            # Phase 2: Prepare run directories
            if experiment.clean_run_dirs_on_start:
                logger.info(f"[prechecks] Removing previous run directories under {self.run_root}")
                reset_dir(self.run_root)
            else:
                ensure_dir(self.run_root)

            # Phase 3: Wait for the application
            if experiment.liveness.enabled:
                await self.liveness_probe.wait_until_ready()

            # Phase 4: Workloads
            builder = ReportBuilder()
            series_runner = self.build_series_runner()
            for workload in experiment.workloads:
                builder.add(await series_runner.run(workload))

            # Phase 5: Placements and report
            placements = await self.snapshot_placements()
            report = builder.build(placements)
            self.store.save(report)

        logger.info(
            f"Execution {self.execution_id} completed in {format_duration(int(timer.elapsed_seconds))}; "
            f"results in {self.output_path}"
        )
        return report

    async def snapshot_placements(self) -> PlacementMap:
        logger.info(f"[placements] Collecting service placements ({self.placement_source.name})")
        return await self.placement_source.snapshot()
