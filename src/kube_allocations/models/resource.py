"""Measurement records produced by the collectors."""

from dataclasses import dataclass, field
from enum import Enum

from kube_allocations.qty import Quantity


class ResourceQualifier(str, Enum):
    """Role a measured quantity plays."""

    LIMIT = "limit"
    REQUESTED = "requested"
    ALLOCATABLE = "allocatable"
    UTILIZATION = "utilization"


@dataclass(frozen=True)
class Location:
    """Where a measurement was observed.

    Every field is optional: node allocatable has no namespace or pod, and
    pod metrics may not know their node.
    """

    node_name: str | None = None
    namespace: str | None = None
    pod_name: str | None = None


@dataclass(frozen=True)
class Resource:
    """A single tagged fact, e.g. "pod p1 on node n1 requests 500m cpu"."""

    kind: str  # cpu, memory, pods, nvidia.com/gpu, ...
    qualifier: ResourceQualifier
    quantity: Quantity
    location: Location = field(default_factory=Location)
