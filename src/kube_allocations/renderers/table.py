"""Table renderer using Rich for terminal output."""

from __future__ import annotations

import io
from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

from kube_allocations.renderers.base import OutputFormat

if TYPE_CHECKING:
    from kube_allocations.aggregation import GroupBy
    from kube_allocations.models import QtyByQualifier
    from kube_allocations.qty import Quantity
    from kube_allocations.report import ReportRow

ABSENT = "__"
MAX_WIDTH = 10_000


def _exceeds(value: Quantity | None, bound: Quantity | None) -> bool:
    """Absent values sort below present ones."""
    if value is None:
        return False
    return bound is None or value > bound


def _is_empty(quantity: Quantity | None) -> bool:
    return quantity is None or quantity.is_zero()


class TableRenderer:
    """Renders report rows as a table with the tree drawn in the first column."""

    format = OutputFormat.TABLE

    OK_STYLE = "green"
    WARN_STYLE = "yellow"

    VALUE_MIN_WIDTH = 8

    def build_table(self, rows: Sequence[ReportRow], *, show_utilization: bool = False) -> Table:
        """Create the Rich Table for ``rows``.

        On a narrow terminal only the Resource column gives way: long names
        fold onto several lines and the value columns keep their full width.
        """
        table = Table(box=box.SIMPLE_HEAD, pad_edge=False)
        table.add_column("Resource", justify="left", header_style="bold", overflow="fold")
        titles = ["Requested", "Limit", "Allocatable", "Free"]
        if show_utilization:
            titles.insert(0, "Utilization")
        for title in titles:
            table.add_column(
                title,
                justify="right",
                header_style="bold",
                no_wrap=True,
                min_width=self.VALUE_MIN_WIDTH,
            )

        for row in rows:
            label = f"{row.prefix}{row.name}"
            totals = row.totals
            if totals is None:
                table.add_row(label, *([""] * (len(table.columns) - 1)))
                continue
            cells = []
            if show_utilization:
                cells.append(self.format_cell(totals.utilization, totals.allocatable))
            cells.append(self.format_cell(totals.requested, totals.allocatable))
            cells.append(self.format_cell(totals.limit, totals.allocatable))
            cells.append(self.format_cell(totals.allocatable))
            cells.append(self.format_cell(totals.calc_free()))
            table.add_row(label, *cells, style=self.row_style(totals))
        return table

    def row_style(self, totals: QtyByQualifier) -> str:
        """Yellow when requests or usage exceed limits, or either is unset."""
        if _exceeds(totals.requested, totals.limit) or _exceeds(totals.utilization, totals.limit):
            return self.WARN_STYLE
        if _is_empty(totals.requested) or _is_empty(totals.limit):
            return self.WARN_STYLE
        return self.OK_STYLE

    @staticmethod
    def format_cell(quantity: Quantity | None, whole: Quantity | None = None) -> str:
        """``__`` when absent, else the scaled value with its share of ``whole``."""
        if quantity is None:
            return ABSENT
        if whole is None or whole.is_zero():
            return quantity.adjust_scale()
        return f"({quantity.calc_percentage(whole):.0f}%) {quantity.adjust_scale()}"

    def print_table(
        self, console: Console, rows: Sequence[ReportRow], *, show_utilization: bool = False
    ) -> None:
        """Print the table on a terminal, folding the Resource column to fit its width."""
        console.print(self.build_table(rows, show_utilization=show_utilization))

    @staticmethod
    def natural_width(table: Table) -> int:
        """Width the table takes when no column has to give way."""
        console = Console(file=io.StringIO(), width=MAX_WIDTH)
        return console.measure(table).maximum

    def render(
        self,
        rows: Sequence[ReportRow],
        *,
        group_by: Sequence[GroupBy] = (),
        show_utilization: bool = False,
        **options,
    ) -> str:
        """Render the table as plain text, for pipes and files.

        Args:
            rows: Report rows in tree order
            group_by: Unused; the tree carries the grouping
            show_utilization: Whether to include the Utilization column
            **options: Additional options (width; default is the table's
                natural width so that no cell is cut)

        Returns:
            Plain-text table
        """
        table = self.build_table(rows, show_utilization=show_utilization)
        console = Console(
            file=io.StringIO(),
            width=options.get("width") or self.natural_width(table),
            record=True,
        )
        console.print(table)
        return console.export_text()
