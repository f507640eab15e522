"""Repeated runs of one named workload."""

from __future__ import annotations

import logging

from common.models.experiment import LoadParams, WarmupConfig, WorkloadSpec
from common.models.run import WorkloadSeries
from harness.core.retry import RetryController
from harness.core.stats import StatsExtractor
from harness.core.workload_runner import WorkloadRunner

logger = logging.getLogger(__name__)


class WorkloadSeriesRunner:
    """Warm up once, then record exactly ``repetitions`` results."""

    def __init__(
        self,
        runner: WorkloadRunner,
        retry: RetryController,
        extractor: StatsExtractor,
        load: LoadParams,
        warmup: WarmupConfig,
        repetitions: int,
    ):
        self.runner = runner
        self.retry = retry
        self.extractor = extractor
        self.load = load
        self.warmup = warmup
        self.repetitions = repetitions

    async def run(self, workload: WorkloadSpec) -> WorkloadSeries:
        series = WorkloadSeries(label=workload.label)

        if self.warmup.enabled:
            try:
                await self.runner.warm_up(
                    workload,
                    duration=self.warmup.duration,
                    rate=self.warmup.rate_for(self.load.rate),
                )
            except Exception as e:
                logger.warning(f"[{workload.label}] Warm-up failed (ignored): {e}")

        for i in range(1, self.repetitions + 1):
            logger.info(f"[{workload.label}] Running {workload.label} (run {i}/{self.repetitions})")
            outcome = await self.retry.run(workload, i)
            result = self.extractor.extract(outcome.artifact)
            series.append(result, outcome)

            logger.info(
                f"[{workload.label}] Run {i}: rps={result.rps_observed} p50={result.p50} "
                f"p99={result.p99} e2e_median={result.e2e_median:.3f} "
                f"samples={len(result.e2e_vals)} ({outcome.status.value})"
            )

        if not series.is_reliable:
            logger.warning(
                f"[{workload.label}] Unhealthy repetitions kept in results: "
                f"{', '.join(str(i) for i in series.unhealthy_runs)}"
            )
        return series
