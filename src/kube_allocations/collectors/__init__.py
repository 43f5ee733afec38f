"""Collectors turning cluster objects into flat resource records."""

from kube_allocations.collectors.collect import (
    CollectionError,
    CollectionResult,
    collect_from_metrics,
    collect_from_nodes,
    collect_from_pods,
    collect_resources,
    extract_locations,
    is_scheduled,
    resources_from_metrics,
    resources_from_nodes,
    resources_from_pods,
)
from kube_allocations.collectors.kubectl import Kubectl, KubectlError

__all__ = [
    "CollectionError",
    "CollectionResult",
    "Kubectl",
    "KubectlError",
    "collect_from_metrics",
    "collect_from_nodes",
    "collect_from_pods",
    "collect_resources",
    "extract_locations",
    "is_scheduled",
    "resources_from_metrics",
    "resources_from_nodes",
    "resources_from_pods",
]
