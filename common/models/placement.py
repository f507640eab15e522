"""Cluster placement models."""

from __future__ import annotations

from pydantic import BaseModel, Field


PRIMARY_LABEL = "node0"
SECONDARY_PREFIX = "node"


class ClusterNode(BaseModel):
    """A node as reported by the orchestrator."""
    name: str = Field(..., description="Orchestrator-native node identifier")
    is_control: bool = Field(default=False, description="Manager / control-plane node")


class TaskAssignment(BaseModel):
    """One running service instance and the node it runs on."""
    node: str
    service: str


class PlacementMap(BaseModel):
    """Normalized node label -> services currently running there.

    ``node0`` is the control node; ``node1..N`` are the remaining nodes in
    sorted order of their native names. Nodes with nothing running map to
    an empty list rather than being omitted.
    """
    nodes: dict[str, list[str]] = Field(default_factory=dict)
    # label -> native node name, for logging only
    native_names: dict[str, str] = Field(default_factory=dict, exclude=True)

    def to_json(self) -> dict[str, list[str]]:
        return {label: list(services) for label, services in self.nodes.items()}

    @classmethod
    def from_json(cls, data: dict) -> "PlacementMap":
        return cls(nodes={str(k): [str(s) for s in v] for k, v in (data or {}).items()})

    def __len__(self) -> int:
        return len(self.nodes)
