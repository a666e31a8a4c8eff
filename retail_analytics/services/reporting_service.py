# retail_analytics/services/reporting_service.py
import csv
import io
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from retail_analytics.core.derivations import sales_totals
from retail_analytics.entities import FulfillmentStatus
from retail_analytics.exceptions import ReportingError
from retail_analytics.services.view_registry import ViewRegistry, json_default
from retail_analytics.utils.math_utils import percentage, safe_ratio

logger = logging.getLogger(__name__)

# Dashboard ordering per view: (column, descending)
DEFAULT_SORT = {
    'store_sales': ('net_sales', True),
    'region_sales': ('net_sales', True),
    'product_sales': ('net_sales', True),
    'category_brand_sales': ('net_sales', True),
    'staff_performance': ('net_sales', True),
    'customer_frequency': ('total_spent', True),
    'order_fulfillment': ('order_date', False),
    'order_fulfillment_summary': ('orders_count', True),
    'inventory_snapshot': ('total_stock_units', True),
    'inventory_store_efficiency': ('stock_to_sales_ratio', True),
    'inventory_category_efficiency': ('stock_to_sales_ratio', True),
    'store_profitability': ('net_sales', True),
}


def sort_rows(rows: List[Dict], column: str, descending: bool = True) -> List[Dict]:
    """Sort rows on one column, keeping None values last in either direction."""
    present = [row for row in rows if row.get(column) is not None]
    absent = [row for row in rows if row.get(column) is None]
    present.sort(key=lambda row: row[column], reverse=descending)
    return present + absent


class ReportingService:
    """Service for presenting derived views to the dashboard."""

    def __init__(self, registry: ViewRegistry):
        """Initialize the reporting service.

        Args:
            registry: View registry to read results from
        """
        self.registry = registry

    def report(
        self,
        view_name: str,
        sort_by: Optional[str] = None,
        descending: Optional[bool] = None,
        limit: Optional[int] = None,
        refresh: bool = False
    ) -> Dict:
        """Generate a report for one view.

        Args:
            view_name: Registered view name
            sort_by: Column to sort on; defaults to the dashboard ordering
            descending: Sort direction; defaults to the dashboard ordering
            limit: Optional maximum number of rows
            refresh: Recompute the view instead of using the cached result

        Returns:
            Dictionary with report data
        """
        if limit is not None and limit < 0:
            raise ReportingError(
                f"Row limit must be 0 or more, got {limit}",
                details={'view': view_name, 'limit': limit}
            )

        result = self.registry.refresh(view_name) if refresh else self.registry.get(view_name)

        default_column, default_descending = DEFAULT_SORT.get(view_name, (None, True))
        column = sort_by or default_column
        if descending is None:
            descending = default_descending if sort_by is None else True

        data = result.to_records()
        if column:
            if column not in result.columns:
                raise ReportingError(
                    f"Cannot sort {view_name} by unknown column {column}",
                    details={'view': view_name, 'columns': list(result.columns)}
                )
            data = sort_rows(data, column, descending)

        if limit is not None:
            data = data[:limit]

        return {
            'view': view_name,
            'columns': list(result.columns),
            'data': data,
            'summary': {
                'row_count': len(result),
                'rows_returned': len(data),
                'snapshot_version': result.snapshot_version,
                'sorted_by': column,
                'descending': descending
            },
            'generated_at': datetime.now()
        }

    def kpi_summary(self) -> Dict:
        """Headline figures for the dashboard's KPI cards.

        Returns:
            Dictionary with total net sales, orders, units, overall AOV,
            on-time rate (share of shipped orders with a required date that
            met it) and pending order count. Money is summed from line
            amounts and rounded once.
        """
        snapshot = self.registry.store.snapshot()
        totals = sales_totals(snapshot)
        status_rows = {
            row['fulfillment_status']: row
            for row in self.registry.compute('order_fulfillment_summary', snapshot).rows
        }
        money = self.registry.engine_settings.money

        def status_count(status):
            row = status_rows.get(status.value)
            return row['orders_count'] if row else 0

        on_time = status_count(FulfillmentStatus.ON_TIME)
        late = status_count(FulfillmentStatus.LATE)

        return {
            'snapshot_version': snapshot.version,
            'total_net_sales': money(totals.net_sales),
            'total_orders': totals.orders_cnt,
            'total_units_sold': totals.units_sold,
            'average_order_value': money(safe_ratio(totals.net_sales, totals.orders_cnt)),
            'on_time_rate_pct': money(percentage(on_time, on_time + late)),
            'late_orders': late,
            'pending_orders': status_count(FulfillmentStatus.PENDING)
        }

    def export_report_to_csv(self, report: Dict) -> str:
        """Export a report to CSV.

        Args:
            report: Report dictionary

        Returns:
            CSV data as string
        """
        if 'data' not in report:
            raise ReportingError("Report has no data to export")

        output = io.StringIO()
        writer = csv.writer(output)

        header = report.get('columns') or (list(report['data'][0].keys()) if report['data'] else [])
        writer.writerow(header)

        for row in report['data']:
            writer.writerow(['' if row.get(col) is None else row.get(col) for col in header])

        return output.getvalue()

    def export_report_to_json(self, report: Dict) -> str:
        """Export a report to JSON.

        Args:
            report: Report dictionary

        Returns:
            JSON data as string
        """
        return json.dumps(report, default=json_default, indent=2)

    def to_dataframe(self, report: Dict) -> pd.DataFrame:
        """Report rows as a pandas DataFrame in column order."""
        if 'data' not in report:
            raise ReportingError("Report has no data to export")
        return pd.DataFrame(report['data'], columns=report.get('columns'))
