"""Kubernetes placement source."""

from __future__ import annotations

import json
import logging
from typing import Optional

from common.models.placement import ClusterNode, TaskAssignment
from harness.placement.base import PlacementSource
from harness.placement.commands import CommandRunner

logger = logging.getLogger(__name__)

CONTROL_PLANE_LABELS = (
    "node-role.kubernetes.io/control-plane",
    "node-role.kubernetes.io/master",
)


class KubernetesPlacementSource(PlacementSource):
    """Read node roles and running pods via kubectl JSON output."""

    name = "kubernetes"

    def __init__(
        self,
        runner: CommandRunner,
        namespace: Optional[str] = None,
        service_label: str = "service",
        kubectl: str = "kubectl",
    ):
        super().__init__(runner)
        self.namespace = namespace
        self.service_label = service_label
        self.kubectl = kubectl

    async def _get_items(self, args: list[str]) -> list[dict]:
        output = await self._query([self.kubectl, "get", *args, "-o", "json"])
        if not output.strip():
            return []
        try:
            return json.loads(output).get("items", [])
        except json.JSONDecodeError as e:
            logger.warning(f"[placements] Invalid kubectl JSON output: {e}")
            return []

    async def list_nodes(self) -> list[ClusterNode]:
        nodes = []
        for item in await self._get_items(["nodes"]):
            metadata = item.get("metadata", {})
            labels = metadata.get("labels") or {}
            name = metadata.get("name")
            if not name:
                continue
            nodes.append(ClusterNode(
                name=name,
                is_control=any(label in labels for label in CONTROL_PLANE_LABELS),
            ))
        return nodes

    async def list_running_assignments(self) -> list[TaskAssignment]:
        args = ["pods"]
        if self.namespace:
            args.extend(["-n", self.namespace])

        assignments = []
        for item in await self._get_items(args):
            if item.get("status", {}).get("phase") != "Running":
                continue
            node = item.get("spec", {}).get("nodeName")
            service = (item.get("metadata", {}).get("labels") or {}).get(self.service_label)
            if node and service:
                assignments.append(TaskAssignment(node=node, service=service))
        return assignments
