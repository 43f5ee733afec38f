"""Grouping engine that rolls resource records up into a forest of totals."""

from kube_allocations.aggregation.aggregator import (
    DEFAULT_GROUP_BY,
    KEY_EXTRACTORS,
    GroupBy,
    MixedKindsError,
    accept_resource,
    filter_resources,
    group_resources,
    make_qualifiers,
    sum_by_qualifier,
)

__all__ = [
    "DEFAULT_GROUP_BY",
    "KEY_EXTRACTORS",
    "GroupBy",
    "MixedKindsError",
    "accept_resource",
    "filter_resources",
    "group_resources",
    "make_qualifiers",
    "sum_by_qualifier",
]
