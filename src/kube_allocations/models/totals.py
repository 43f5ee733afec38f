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

"""Aggregated totals and the flat forest they are arranged in."""

from __future__ import annotations

from dataclasses import dataclass, replace

from kube_allocations.models.resource import ResourceQualifier
from kube_allocations.qty import Quantity

# Qualifier -> QtyByQualifier field name
_FIELD_BY_QUALIFIER = {
    ResourceQualifier.LIMIT: "limit",
    ResourceQualifier.REQUESTED: "requested",
    ResourceQualifier.ALLOCATABLE: "allocatable",
    ResourceQualifier.UTILIZATION: "utilization",
}


def _add(lhs: Quantity | None, rhs: Quantity) -> Quantity:
    return rhs if lhs is None else lhs + rhs


@dataclass(frozen=True)
class QtyByQualifier:
    """Summed quantities of one group, one optional value per qualifier.

    ``None`` means no record of that qualifier was seen, which is not the
    same as a measured zero.
    """

    limit: Quantity | None = None
    requested: Quantity | None = None
    allocatable: Quantity | None = None
    utilization: Quantity | None = None

    def get(self, qualifier: ResourceQualifier) -> Quantity | None:
        return getattr(self, _FIELD_BY_QUALIFIER[qualifier])

    def accumulate(self, qualifier: ResourceQualifier, quantity: Quantity) -> QtyByQualifier:
        """Return a copy with ``quantity`` added to the ``qualifier`` bucket."""
        name = _FIELD_BY_QUALIFIER[qualifier]
        return replace(self, **{name: _add(getattr(self, name), quantity)})

    def calc_free(self) -> Quantity | None:
        """Allocatable minus the greater of limit and requested, floored at zero."""
        used = [q for q in (self.limit, self.requested) if q is not None]
        if self.allocatable is None or not used:
            return None
        return self.allocatable - max(used)


@dataclass(frozen=True)
class GroupNode:
    """One entry of the aggregated forest.

    ``path`` holds one key per grouping level; a node's parent is the entry
    whose path is this path minus its last key.
    """

    path: tuple[str, ...]
    totals: QtyByQualifier | None = None

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def name(self) -> str:
        return self.path[-1] if self.path else ""

    def is_parent_of(self, other: GroupNode) -> bool:
        return len(self.path) + 1 == len(other.path) and other.path[: len(self.path)] == self.path
