"""CSV renderer: one line per aggregated row, for spreadsheets and scripts."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from kube_allocations.renderers.base import OutputFormat

if TYPE_CHECKING:
    from kube_allocations.aggregation import GroupBy
    from kube_allocations.qty import Quantity
    from kube_allocations.report import ReportRow


def _number(quantity: Quantity | None) -> str:
    return "" if quantity is None else f"{float(quantity):.2f}"


def _value_cells(quantity: Quantity | None, whole: Quantity | None) -> list[str]:
    """Value and percentage-of-whole cells; blank when unknown."""
    if quantity is None:
        return ["", ""]
    if whole is None or whole.is_zero():
        return [_number(quantity), ""]
    return [_number(quantity), f"{quantity.calc_percentage(whole):.0f}%"]


class CSVRenderer:
    """Renders report rows as comma-separated values."""

    format = OutputFormat.CSV

    def header(self, group_by: Sequence[GroupBy], show_utilization: bool) -> list[str]:
        columns = ["Date", "Kind"] + [g.value for g in group_by]
        if show_utilization:
            columns += ["Utilization", "%Utilization"]
        return columns + ["Requested", "%Requested", "Limit", "%Limit", "Allocatable", "Free"]

    def render(
        self,
        rows: Sequence[ReportRow],
        *,
        group_by: Sequence[GroupBy],
        show_utilization: bool = False,
        **options,
    ) -> str:
        """Render rows with totals as CSV; rows without totals are skipped.

        Options:
            now: Timestamp for the Date column (default: current UTC time)
        """
        now = options.get("now") or datetime.now(timezone.utc)
        date = now.isoformat()

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.header(group_by, show_utilization))
        for row in rows:
            totals = row.totals
            if totals is None:
                continue
            depth = len(row.path)
            kind = group_by[depth - 1].value if 0 < depth <= len(group_by) else ""
            cells = [date, kind]
            cells += [row.path[i] if i < depth else "" for i in range(len(group_by))]
            if show_utilization:
                cells += _value_cells(totals.utilization, totals.allocatable)
            cells += _value_cells(totals.requested, totals.allocatable)
            cells += _value_cells(totals.limit, totals.allocatable)
            cells.append(_number(totals.allocatable))
            cells.append(_number(totals.calc_free()))
            writer.writerow(cells)
        return buffer.getvalue()
