# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Map nodes, pods and pod metrics into resource records."""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from kube_allocations.collectors.kubectl import Kubectl, KubectlError
from kube_allocations.collectors.schemas import (
    NodeList,
    Pod,
    PodList,
    PodMetricsList,
)
from kube_allocations.models.resource import Location, Resource, ResourceQualifier
from kube_allocations.qty import Quantity, QuantityParseError

logger = logging.getLogger(__name__)

METRICS_PATH = "/apis/metrics.k8s.io/v1beta1"


class CollectionError(Exception):
    """Raised when cluster data cannot be turned into resource records."""


@dataclass
class CollectionResult:
    """Records from every source, and whether utilization could be read."""

    resources: list[Resource] = field(default_factory=list)
    show_utilization: bool = False


def _parse_quantity(
    value: str, location: Location, qualifier: ResourceQualifier, kind: str
) -> Quantity:
    try:
        quantity = Quantity.parse(value)
    except QuantityParseError as e:
        raise CollectionError(
            f"Failed to read quantity of {location} / {qualifier.value} {kind}={value!r}"
        ) from e
    if quantity < Quantity.zero():
        raise CollectionError(
            f"Negative quantity at {location} / {qualifier.value} {kind}={value!r}"
        )
    return quantity


# Nodes


def resources_from_nodes(nodes: NodeList) -> list[Resource]:
    """One ALLOCATABLE record per node and allocatable resource kind."""
    resources = []
    for node in nodes.items:
        location = Location(node_name=node.metadata.name)
        allocatable = node.status.allocatable if node.status else None
        for kind, value in (allocatable or {}).items():
            quantity = _parse_quantity(value, location, ResourceQualifier.ALLOCATABLE, kind)
            resources.append(
                Resource(
                    kind=kind,
                    qualifier=ResourceQualifier.ALLOCATABLE,
                    quantity=quantity,
                    location=location,
                )
            )
    return resources


def collect_from_nodes(kubectl: Kubectl) -> list[Resource]:
    nodes = kubectl.get(NodeList, ["get", "nodes", "-o", "json"])
    resources = resources_from_nodes(nodes)
    logger.info("Collected %d resources from %d nodes", len(resources), len(nodes.items))
    return resources


# Pods


def is_scheduled(pod: Pod) -> bool:
    """Check whether a pod holds resources on a node.

    Running pods do; Succeeded and Failed pods no longer do; Pending pods do
    once the PodScheduled condition is True. Unknown (e.g. node down) counts
    as not scheduled.
    """
    status = pod.status
    if status is None or status.phase is None:
        return False
    if status.phase == "Running":
        return True
    if status.phase == "Pending":
        return any(
            c.type == "PodScheduled" and c.status == "True"
            for c in status.conditions or []
        )
    return False


def _process_resources(
    effective: dict[str, Quantity],
    resource_list: Mapping[str, str] | None,
    op: Callable[[Quantity, Quantity], Quantity],
    location: Location,
    qualifier: ResourceQualifier,
) -> None:
    """Fold ``resource_list`` into ``effective`` with ``op`` per resource kind."""
    for kind, value in (resource_list or {}).items():
        quantity = _parse_quantity(value, location, qualifier, kind)
        if kind in effective:
            effective[kind] = op(effective[kind], quantity)
        else:
            effective[kind] = quantity


def _push_resources(
    resources: list[Resource],
    location: Location,
    qualifier: ResourceQualifier,
    quantities: Mapping[str, Quantity],
) -> None:
    for kind, quantity in quantities.items():
        resources.append(
            Resource(kind=kind, qualifier=qualifier, quantity=quantity, location=location)
        )
    # Every pod also counts once against the node's "pods" capacity
    resources.append(
        Resource(
            kind="pods",
            qualifier=qualifier,
            quantity=Quantity.parse("1"),
            location=location,
        )
    )


def resources_from_pods(pods: PodList) -> list[Resource]:
    """REQUESTED and LIMIT records for every scheduled pod.

    Effective values follow the scheduler: regular containers add up, each
    init container can raise the value (max), and pod overhead is added to
    both requests and limits.
    """
    resources: list[Resource] = []
    for pod in pods.items:
        if not is_scheduled(pod):
            continue
        spec = pod.spec
        location = Location(
            node_name=spec.node_name if spec else None,
            namespace=pod.metadata.namespace,
            pod_name=pod.metadata.name,
        )
        requests: dict[str, Quantity] = {}
        limits: dict[str, Quantity] = {}
        containers = spec.containers if spec else []
        for container in containers:
            if container.resources:
                _process_resources(requests, container.resources.requests, operator.add, location, ResourceQualifier.REQUESTED)
                _process_resources(limits, container.resources.limits, operator.add, location, ResourceQualifier.LIMIT)
        init_containers = (spec.init_containers if spec else None) or []
        for container in init_containers:
            if container.resources:
                _process_resources(requests, container.resources.requests, max, location, ResourceQualifier.REQUESTED)
                _process_resources(limits, container.resources.limits, max, location, ResourceQualifier.LIMIT)
        if spec and spec.overhead:
            _process_resources(requests, spec.overhead, operator.add, location, ResourceQualifier.REQUESTED)
            _process_resources(limits, spec.overhead, operator.add, location, ResourceQualifier.LIMIT)

        _push_resources(resources, location, ResourceQualifier.REQUESTED, requests)
        _push_resources(resources, location, ResourceQualifier.LIMIT, limits)
    return resources


def collect_from_pods(kubectl: Kubectl, namespace: str | None = None) -> list[Resource]:
    args = ["get", "pods", "-o", "json"]
    args += ["--namespace", namespace] if namespace else ["--all-namespaces"]
    pods = kubectl.get(PodList, args)
    resources = resources_from_pods(pods)
    logger.info("Collected %d resources from %d pods", len(resources), len(pods.items))
    return resources


# Pod metrics


def extract_locations(resources: Iterable[Resource]) -> dict[tuple[str, str], Location]:
    """Location of every known pod, keyed by (namespace, pod name)."""
    locations = {}
    for resource in resources:
        location = resource.location
        if location.pod_name is not None:
            locations[(location.namespace or "", location.pod_name)] = location
    return locations


def resources_from_metrics(
    metrics: PodMetricsList, locations: Mapping[tuple[str, str], Location]
) -> list[Resource]:
    """cpu and memory UTILIZATION records per pod.

    The metrics API does not report the node, so the location comes from the
    pods collected earlier. A container reporting exactly zero still counts
    as ``Quantity.lowest_positive()`` so that it is not mistaken for missing
    data.
    """
    resources = []
    for pod_metrics in metrics.items:
        metadata = pod_metrics.metadata
        key = (metadata.namespace or "", metadata.name or "")
        location = locations.get(key) or Location(
            namespace=metadata.namespace, pod_name=metadata.name
        )
        cpu = Quantity.zero()
        memory = Quantity.zero()
        for container in pod_metrics.containers:
            cpu_usage = _parse_quantity(container.usage.cpu, location, ResourceQualifier.UTILIZATION, "cpu")
            memory_usage = _parse_quantity(container.usage.memory, location, ResourceQualifier.UTILIZATION, "memory")
            cpu = cpu + max(cpu_usage, Quantity.lowest_positive())
            memory = memory + max(memory_usage, Quantity.lowest_positive())
        resources.append(
            Resource(kind="cpu", qualifier=ResourceQualifier.UTILIZATION, quantity=cpu, location=location)
        )
        resources.append(
            Resource(kind="memory", qualifier=ResourceQualifier.UTILIZATION, quantity=memory, location=location)
        )
    return resources


def collect_from_metrics(
    kubectl: Kubectl, resources: Iterable[Resource], namespace: str | None = None
) -> list[Resource]:
    path = f"{METRICS_PATH}/namespaces/{namespace}/pods" if namespace else f"{METRICS_PATH}/pods"
    metrics = kubectl.get(PodMetricsList, ["get", "--raw", path])
    utilization = resources_from_metrics(metrics, extract_locations(resources))
    logger.info(
        "Collected %d resources from %d pod metrics", len(utilization), len(metrics.items)
    )
    return utilization


def collect_resources(
    kubectl: Kubectl,
    namespace: str | None = None,
    *,
    utilization: bool = False,
) -> CollectionResult:
    """Collect node, pod and pod-metrics records into one flat list.

    Node and pod failures are fatal. A metrics failure only hides the
    utilization column; it is reported as a warning when ``utilization`` was
    explicitly requested.

    Raises:
        KubectlError: If nodes or pods cannot be listed
        CollectionError: If a quantity in the cluster data is invalid
    """
    result = CollectionResult()
    result.resources.extend(collect_from_nodes(kubectl))
    result.resources.extend(collect_from_pods(kubectl, namespace))
    try:
        result.resources.extend(collect_from_metrics(kubectl, result.resources, namespace))
        result.show_utilization = True
    except KubectlError as e:
        if utilization:
            logger.warning("Failed to list pod metrics, maybe Metrics API not available: %s", e)
        else:
            logger.debug("Pod metrics unavailable: %s", e)
    return result
