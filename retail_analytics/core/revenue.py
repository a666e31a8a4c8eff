from decimal import Decimal
from typing import Iterable, Optional, Set

from retail_analytics.entities import OrderLine

ZERO = Decimal('0')


def line_gross_sales(line: OrderLine) -> Decimal:
    """Gross sales of a line: quantity x list price."""
    return line.quantity * line.list_price


def line_net_sales(line: OrderLine) -> Decimal:
    """Net sales of a line: quantity x list price x (1 - discount)."""
    return line.quantity * line.list_price * (1 - line.discount)


def line_discount_amount(line: OrderLine) -> Decimal:
    """Discount given on a line: gross sales - net sales."""
    return line_gross_sales(line) - line_net_sales(line)


class SalesTotals:
    """Running sums of the revenue formula over a group of order lines."""

    def __init__(self):
        self.order_ids: Set[int] = set()
        self.units_sold = 0
        self.gross_sales = ZERO
        self.net_sales = ZERO

    def add_line(self, line: OrderLine) -> None:
        self.order_ids.add(line.order_id)
        self.units_sold += line.quantity
        self.gross_sales += line_gross_sales(line)
        self.net_sales += line_net_sales(line)

    def add_lines(self, lines: Iterable[OrderLine]) -> None:
        for line in lines:
            self.add_line(line)

    def merge(self, other: 'SalesTotals') -> None:
        """Fold another group into this one; the groups must not share orders."""
        self.order_ids |= other.order_ids
        self.units_sold += other.units_sold
        self.gross_sales += other.gross_sales
        self.net_sales += other.net_sales

    @property
    def orders_cnt(self) -> int:
        return len(self.order_ids)

    @property
    def discount_amount(self) -> Decimal:
        return self.gross_sales - self.net_sales

    @property
    def has_sales(self) -> bool:
        return bool(self.order_ids)

    def net_sales_or_none(self) -> Optional[Decimal]:
        return self.net_sales if self.has_sales else None
