"""Health-checked retry loop around single workload runs."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from common.models.experiment import RetryPolicy, WorkloadSpec
from common.models.run import HealthVerdict, RetryOutcome, RetryStatus, RunArtifact
from harness.core.health import classify_run
from harness.core.workload_runner import WorkloadRunner

logger = logging.getLogger(__name__)


class RetryState(str, Enum):
    """States of the retry controller."""
    ATTEMPTING = "attempting"
    SLEEPING = "sleeping"
    DONE = "done"


class RetryController:
    """Run a workload until one attempt is healthy or the budget is spent.

    Each attempt gets a fresh run directory. When every attempt is
    unhealthy the *last* artifact is kept (not the least-bad one) and the
    repetition is reported as exhausted instead of failing the series.
    """

    def __init__(
        self,
        runner: WorkloadRunner,
        policy: RetryPolicy,
        expected_threads: int,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.runner = runner
        self.policy = policy
        self.expected_threads = expected_threads
        self._sleep = sleep
        self.state = RetryState.DONE

    async def run(self, workload: WorkloadSpec, repetition: int) -> RetryOutcome:
        attempt = 0
        artifact: Optional[RunArtifact] = None
        verdict: Optional[HealthVerdict] = None
        status: Optional[RetryStatus] = None

        self.state = RetryState.ATTEMPTING
        while self.state != RetryState.DONE:
            if self.state == RetryState.ATTEMPTING:
                attempt += 1
                artifact = await self.runner.run(workload, repetition, attempt)
                verdict = classify_run(artifact, self.expected_threads)

                if verdict.healthy:
                    status = RetryStatus.HEALTHY
                    self.state = RetryState.DONE
                elif attempt >= self.policy.max_attempts:
                    status = RetryStatus.EXHAUSTED
                    self.state = RetryState.DONE
                else:
                    logger.warning(
                        f"[{workload.label}] Run unhealthy ({verdict.describe()}). "
                        f"Retrying in {self.policy.backoff_seconds:g}s "
                        f"(attempt {attempt}/{self.policy.max_attempts})..."
                    )
                    self.state = RetryState.SLEEPING

            elif self.state == RetryState.SLEEPING:
                await self._sleep(self.policy.backoff_seconds)
                self.state = RetryState.ATTEMPTING

        if status == RetryStatus.EXHAUSTED:
            logger.warning(
                f"[{workload.label}] Run {repetition} remained unhealthy after "
                f"{attempt} attempt(s) ({verdict.describe()}); keeping latest output, "
                f"treat this entry as unreliable"
            )
        elif attempt > 1:
            logger.info(f"[{workload.label}] Run {repetition} healthy after {attempt} attempts")

        return RetryOutcome(status=status, artifact=artifact, verdict=verdict, attempts=attempt)
