"""kube-allocations: resource allocations of a Kubernetes cluster as a tree.

Public API:
    - Quantity: exact resource quantities ("500m", "1.5Gi", ...)
    - make_qualifiers: records -> forest of (path, totals)
    - compute_prefixes: forest -> tree prefixes
    - build_report: records -> rows ready for a renderer

Example:
    from kube_allocations import GroupBy, build_report, TableRenderer

    rows = build_report(resources, [GroupBy.RESOURCE, GroupBy.NODE])
    print(TableRenderer().render(rows))
"""

__version__ = "0.14.9"

from kube_allocations.qty import Quantity, QuantityParseError
from kube_allocations.models import (
    GroupNode,
    Location,
    QtyByQualifier,
    Resource,
    ResourceQualifier,
)
from kube_allocations.aggregation import (
    DEFAULT_GROUP_BY,
    GroupBy,
    MixedKindsError,
    group_resources,
    make_qualifiers,
    sum_by_qualifier,
)
from kube_allocations.tree import compute_prefixes, provide_prefix
from kube_allocations.report import ReportRow, build_report
from kube_allocations.renderers import CSVRenderer, OutputFormat, TableRenderer

__all__ = [
    "__version__",
    # Quantities
    "Quantity",
    "QuantityParseError",
    # Models
    "GroupNode",
    "Location",
    "QtyByQualifier",
    "Resource",
    "ResourceQualifier",
    # Aggregation
    "DEFAULT_GROUP_BY",
    "GroupBy",
    "MixedKindsError",
    "group_resources",
    "make_qualifiers",
    "sum_by_qualifier",
    # Tree
    "compute_prefixes",
    "provide_prefix",
    # Report
    "ReportRow",
    "build_report",
    "CSVRenderer",
    "OutputFormat",
    "TableRenderer",
]
