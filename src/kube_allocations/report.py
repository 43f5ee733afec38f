"""Report assembly: filter, aggregate and attach tree prefixes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from kube_allocations.aggregation import GroupBy, make_qualifiers
from kube_allocations.models import GroupNode, QtyByQualifier, Resource
from kube_allocations.qty import Quantity
from kube_allocations.tree import compute_prefixes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportRow:
    """A forest node ready for presentation."""

    prefix: str
    path: tuple[str, ...]
    totals: QtyByQualifier | None

    @property
    def name(self) -> str:
        return self.path[-1] if self.path else "???"


def _is_empty(quantity: Quantity | None) -> bool:
    return quantity is None or quantity.is_zero()


def is_zero_row(node: GroupNode) -> bool:
    """True when a row has totals but nothing requested, limited, allocatable or used."""
    totals = node.totals
    if totals is None:
        return False
    return (
        totals.utilization is None
        and _is_empty(totals.requested)
        and _is_empty(totals.limit)
        and _is_empty(totals.allocatable)
    )


def filter_zero_rows(forest: Sequence[GroupNode]) -> list[GroupNode]:
    return [node for node in forest if not is_zero_row(node)]


def build_report(
    resources: Sequence[Resource],
    group_by: Sequence[GroupBy],
    resource_names: Sequence[str] = (),
    *,
    show_zero: bool = False,
) -> list[ReportRow]:
    """Aggregate records and attach a tree prefix to every row.

    Zero rows are removed before prefixes are computed so the drawn tree
    matches the rows actually shown.
    """
    forest = make_qualifiers(resources, group_by, resource_names)
    if not show_zero:
        kept = filter_zero_rows(forest)
        logger.debug("Hiding %d zero rows", len(forest) - len(kept))
        forest = kept
    prefixes = compute_prefixes(forest)
    return [
        ReportRow(prefix=prefix, path=node.path, totals=node.totals)
        for node, prefix in zip(forest, prefixes)
    ]
