"""Run health classification."""

from __future__ import annotations

from common.models.run import HealthVerdict, RunArtifact
from harness.core.stats import parse_non_2xx


def classify_run(artifact: RunArtifact, expected_threads: int) -> HealthVerdict:
    """Decide whether a completed run can be trusted.

    Healthy iff no non-2xx/3xx responses were reported (an absent counter
    line counts as zero), at least ``expected_threads`` worker sample files
    exist, and at least one of them holds a numeric sample. Worker files
    stand in for liveness because the generator can leave empty or
    truncated files behind when it runs out of resources.
    """
    reasons = []

    non_2xx = parse_non_2xx(artifact.summary_text)
    if non_2xx is None:
        reasons.append("unparseable Non-2xx or 3xx responses count")
        non_2xx_count = -1
    else:
        non_2xx_count = non_2xx
        if non_2xx_count > 0:
            reasons.append(f"{non_2xx_count} non-2xx/3xx responses")

    worker_files = artifact.worker_file_count
    if worker_files < expected_threads:
        reasons.append(f"{worker_files} worker files, expected {expected_threads}")

    has_numeric = artifact.has_numeric_samples
    if not has_numeric:
        reasons.append("no numeric latency samples")

    return HealthVerdict(
        healthy=not reasons,
        non_2xx=non_2xx_count,
        worker_files=worker_files,
        expected_workers=expected_threads,
        has_numeric_samples=has_numeric,
        exit_code=artifact.exit_code,
        reasons=reasons,
    )
