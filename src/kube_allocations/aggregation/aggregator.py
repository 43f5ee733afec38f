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

"""Aggregation engine for grouping resource records into a forest of totals."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from enum import Enum

from kube_allocations.models.resource import Resource
from kube_allocations.models.totals import GroupNode, QtyByQualifier

logger = logging.getLogger(__name__)


class MixedKindsError(ValueError):
    """Raised when records of different kinds are summed together."""


class GroupBy(str, Enum):
    """Grouping dimension, applied in the order given by the caller."""

    RESOURCE = "resource"
    NODE = "node"
    WORKLOAD = "workload"
    NAMESPACE = "namespace"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            value = value.lower()
            if value == "pod":
                return cls.WORKLOAD
            for member in cls:
                if member.value == value:
                    return member
        return None


DEFAULT_GROUP_BY: tuple[GroupBy, ...] = (GroupBy.RESOURCE, GroupBy.NODE, GroupBy.WORKLOAD)


def _extract_kind(resource: Resource) -> str | None:
    return resource.kind


def _extract_node_name(resource: Resource) -> str | None:
    return resource.location.node_name


def _extract_pod_name(resource: Resource) -> str | None:
    # The synthetic "pods" count says nothing once rows are already per pod
    if resource.kind == "pods":
        return None
    return resource.location.pod_name


def _extract_namespace(resource: Resource) -> str | None:
    return resource.location.namespace


KEY_EXTRACTORS: dict[GroupBy, Callable[[Resource], str | None]] = {
    GroupBy.RESOURCE: _extract_kind,
    GroupBy.NODE: _extract_node_name,
    GroupBy.WORKLOAD: _extract_pod_name,
    GroupBy.NAMESPACE: _extract_namespace,
}


def accept_resource(name: str, resource_filter: Sequence[str]) -> bool:
    """Check a resource name against substring filters (no filter accepts all)."""
    return not resource_filter or any(f in name for f in resource_filter)


def filter_resources(
    resources: Iterable[Resource], resource_names: Sequence[str]
) -> list[Resource]:
    return [r for r in resources if accept_resource(r.kind, resource_names)]


def sum_by_qualifier(resources: Sequence[Resource]) -> QtyByQualifier | None:
    """Sum quantities into one bucket per qualifier.

    Args:
        resources: Records that all share the same kind

    Returns:
        The totals, or None when ``resources`` is empty

    Raises:
        MixedKindsError: If the records do not all share one kind
    """
    if not resources:
        return None
    kinds = {r.kind for r in resources}
    if len(kinds) > 1:
        raise MixedKindsError(
            f"Cannot sum different resource kinds together: {', '.join(sorted(kinds))}"
        )

    totals = QtyByQualifier()
    for resource in resources:
        totals = totals.accumulate(resource.qualifier, resource.quantity)
    return totals


def _group_level(
    resources: Sequence[Resource],
    prefix: tuple[str, ...],
    group_by: Sequence[GroupBy],
    depth: int,
) -> list[GroupNode]:
    """Partition ``resources`` at ``depth`` and recurse into each group.

    Groups keep the order in which their key first appears, and each node is
    emitted before its descendants.
    """
    if depth >= len(group_by):
        return []

    extract = KEY_EXTRACTORS[group_by[depth]]
    groups: dict[str, list[Resource]] = {}
    for resource in resources:
        key = extract(resource)
        if key is not None:
            groups.setdefault(key, []).append(resource)
    logger.debug(
        "Grouping %d resources by %s at depth %d: %d groups",
        len(resources), group_by[depth].value, depth, len(groups),
    )

    out: list[GroupNode] = []
    for key, group in groups.items():
        path = prefix + (key,)
        # A group spanning several kinds has no meaningful sum
        if len({r.kind for r in group}) == 1:
            totals = sum_by_qualifier(group)
        else:
            totals = None
        out.append(GroupNode(path=path, totals=totals))
        out.extend(_group_level(group, path, group_by, depth + 1))
    return out


def group_resources(
    resources: Sequence[Resource], group_by: Sequence[GroupBy]
) -> list[GroupNode]:
    """Group records along ``group_by`` into a forest ordered by path.

    Args:
        resources: Flat collection of records, in any order
        group_by: One or more grouping dimensions, outermost first

    Returns:
        GroupNodes sorted by path, so every parent directly precedes its subtree

    Raises:
        ValueError: If ``group_by`` is empty
    """
    if not group_by:
        raise ValueError("At least one grouping dimension is required")
    forest = _group_level(list(resources), (), list(group_by), 0)
    forest.sort(key=lambda node: node.path)
    return forest


def make_qualifiers(
    resources: Sequence[Resource],
    group_by: Sequence[GroupBy],
    resource_names: Sequence[str] = (),
) -> list[GroupNode]:
    """Filter records by resource name, then group them."""
    accepted = filter_resources(resources, resource_names)
    forest = group_resources(accepted, group_by)
    logger.info(
        "Aggregated %d of %d resources into %d groups",
        len(accepted), len(resources), len(forest),
    )
    return forest
