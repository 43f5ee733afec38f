"""Base renderer and output format definitions."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from kube_allocations.aggregation import GroupBy
    from kube_allocations.report import ReportRow


class OutputFormat(str, Enum):
    """Output format for rendering."""

    TABLE = "table"
    CSV = "csv"


class ReportRenderer(Protocol):
    """Protocol for report renderers."""

    format: OutputFormat

    def render(
        self,
        rows: Sequence[ReportRow],
        *,
        group_by: Sequence[GroupBy],
        show_utilization: bool = False,
        **options,
    ) -> str:
        """Render report rows to text.

        Args:
            rows: Report rows in tree order
            group_by: Grouping dimensions used to build the rows
            show_utilization: Whether the utilization columns are included
            **options: Additional format-specific options

        Returns:
            Rendered output
        """
        ...
