"""Select the placement source for the configured orchestrator."""

from __future__ import annotations

from typing import Optional

from common.models.experiment import OrchestratorConfig, OrchestratorKind
from harness.placement.base import PlacementSource
from harness.placement.commands import CommandRunner
from harness.placement.kubernetes import KubernetesPlacementSource
from harness.placement.swarm import SwarmPlacementSource


def create_placement_source(
    config: OrchestratorConfig,
    use_sudo: bool = False,
    runner: Optional[CommandRunner] = None,
) -> PlacementSource:
    """Build a placement source; ``use_sudo`` only applies to docker."""
    if config.kind == OrchestratorKind.KUBERNETES:
        runner = runner or CommandRunner(timeout=config.command_timeout_seconds)
        return KubernetesPlacementSource(
            runner,
            namespace=config.namespace,
            service_label=config.service_label,
        )

    runner = runner or CommandRunner(
        prefix=["sudo"] if use_sudo else None,
        timeout=config.command_timeout_seconds,
    )
    return SwarmPlacementSource(runner, stack_name=config.stack_name)
