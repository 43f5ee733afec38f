"""Renderers for allocation reports."""

from kube_allocations.renderers.base import OutputFormat, ReportRenderer
from kube_allocations.renderers.csv_renderer import CSVRenderer
from kube_allocations.renderers.table import TableRenderer

__all__ = [
    "OutputFormat",
    "ReportRenderer",
    "CSVRenderer",
    "TableRenderer",
]
