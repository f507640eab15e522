"""Placement snapshot: which services run on which node."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from common.models.placement import (
    PRIMARY_LABEL,
    SECONDARY_PREFIX,
    ClusterNode,
    PlacementMap,
    TaskAssignment,
)
from harness.placement.commands import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


def build_placement_map(
    nodes: Iterable[ClusterNode],
    assignments: Iterable[TaskAssignment],
) -> PlacementMap:
    """Assign normalized labels to nodes and group running services.

    The first control node (by native name) becomes ``node0``. Every other
    node, including additional control nodes, is numbered ``node1..N`` in
    sorted order of native names, so labels do not depend on the order the
    orchestrator lists them in. Assignments on unknown nodes are dropped.
    """
    unique = {}
    for node in nodes:
        existing = unique.get(node.name)
        unique[node.name] = ClusterNode(
            name=node.name,
            is_control=node.is_control or (existing.is_control if existing else False),
        )

    ordered = sorted(unique.values(), key=lambda n: n.name)
    primary = next((n for n in ordered if n.is_control), None)

    labels: dict[str, str] = {}
    if primary is not None:
        labels[primary.name] = PRIMARY_LABEL
    index = 1
    for node in ordered:
        if node.name in labels:
            continue
        labels[node.name] = f"{SECONDARY_PREFIX}{index}"
        index += 1

    services: dict[str, set[str]] = {name: set() for name in labels}
    for assignment in assignments:
        if assignment.node in services and assignment.service:
            services[assignment.node].add(assignment.service)

    placement = PlacementMap()
    for name, label in labels.items():
        placement.nodes[label] = sorted(services[name])
        placement.native_names[label] = name
    return placement


class PlacementSource(ABC):
    """Orchestrator queries needed for a placement snapshot."""

    name = "orchestrator"

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    @abstractmethod
    async def list_nodes(self) -> list[ClusterNode]:
        """Enumerate cluster nodes with their control-node marker."""

    @abstractmethod
    async def list_running_assignments(self) -> list[TaskAssignment]:
        """Enumerate running service instances and their nodes."""

    async def snapshot(self) -> PlacementMap:
        """Query the orchestrator and build the placement map.

        Query failures degrade to an empty result; placement data is
        diagnostic and never blocks a report.
        """
        try:
            nodes = await self.list_nodes()
        except Exception as e:
            logger.warning(f"[placements] Failed to list {self.name} nodes: {e}")
            nodes = []

        try:
            assignments = await self.list_running_assignments()
        except Exception as e:
            logger.warning(f"[placements] Failed to list {self.name} tasks: {e}")
            assignments = []

        placement = build_placement_map(nodes, assignments)
        for label, services in placement.nodes.items():
            logger.info(
                f"[placements] {label} ({placement.native_names.get(label, '?')}): "
                f"{len(services)} service(s)"
            )
        return placement

    async def _query(self, args: list[str]) -> str:
        """Run a query command; log and return empty output on failure."""
        result: CommandResult = await self.runner.run(args)
        if not result.success:
            logger.warning(
                f"[placements] {' '.join(args[:3])} failed (exit {result.exit_code}): "
                f"{result.stderr.strip()[:200]}"
            )
            return ""
        return result.stdout
