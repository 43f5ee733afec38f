"""Data models for resource measurements and aggregated totals."""

from kube_allocations.models.resource import (
    Location,
    Resource,
    ResourceQualifier,
)
from kube_allocations.models.totals import (
    GroupNode,
    QtyByQualifier,
)

__all__ = [
    "Location",
    "Resource",
    "ResourceQualifier",
    "GroupNode",
    "QtyByQualifier",
]
