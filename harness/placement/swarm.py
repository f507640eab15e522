"""Docker Swarm placement source."""

from __future__ import annotations

import logging

from common.models.placement import ClusterNode, TaskAssignment
from harness.placement.base import PlacementSource
from harness.placement.commands import CommandRunner

logger = logging.getLogger(__name__)


class SwarmPlacementSource(PlacementSource):
    """Read node roles and running tasks of one stack via the docker CLI."""

    name = "swarm"

    def __init__(self, runner: CommandRunner, stack_name: str, docker: str = "docker"):
        super().__init__(runner)
        self.stack_name = stack_name
        self.docker = docker

    def service_base_name(self, service: str) -> str:
        """Strip the stack prefix (socialnet_nginx-web-server -> nginx-web-server)."""
        prefix = f"{self.stack_name}_"
        return service[len(prefix):] if service.startswith(prefix) else service

    async def list_nodes(self) -> list[ClusterNode]:
        output = await self._query([
            self.docker, "node", "ls",
            "--format", "{{.Hostname}} {{if .ManagerStatus}}manager{{else}}worker{{end}}",
        ])
        nodes = []
        for line in output.splitlines():
            parts = line.split()
            if len(parts) != 2:
                continue
            nodes.append(ClusterNode(name=parts[0], is_control=parts[1] == "manager"))
        return nodes

    async def list_stack_services(self) -> list[str]:
        output = await self._query([
            self.docker, "stack", "services", self.stack_name, "--format", "{{.Name}}",
        ])
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def list_running_assignments(self) -> list[TaskAssignment]:
        assignments = []
        for service in await self.list_stack_services():
            output = await self._query([
                self.docker, "service", "ps", service,
                "--format", "{{.Node}} {{.CurrentState}}",
            ])
            base = self.service_base_name(service)
            for line in output.splitlines():
                parts = line.split()
                if len(parts) < 2 or parts[1] != "Running":
                    continue
                assignments.append(TaskAssignment(node=parts[0], service=base))
        return assignments
