"""KPI derivations over an entity snapshot.

Every function here is pure: it reads a ``Snapshot`` and returns a list of
row dictionaries. Rows come back sorted by their grouping key so repeated
runs over the same snapshot produce identical output; any presentation
ordering belongs to the reporting layer.

Sales views join orders to their lines, so an order without lines adds
nothing to them. Every ratio is None when its denominator is zero.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from retail_analytics.core.fulfillment import classify_fulfillment, fulfillment_days
from retail_analytics.core.revenue import SalesTotals
from retail_analytics.entities import FulfillmentStatus
from retail_analytics.exceptions import ConfigError
from retail_analytics.store import Snapshot
from retail_analytics.utils.math_utils import mean, percentage, quantize, safe_ratio

Row = Dict[str, object]


@dataclass(frozen=True)
class EngineSettings:
    """Rounding and margin settings shared by all derivations."""

    money_places: int = 2
    day_places: int = 1
    assumed_profit_margin: Decimal = Decimal('0.30')

    @classmethod
    def from_config(cls, settings) -> 'EngineSettings':
        engine_config = settings.engine_config
        for key in ('money_places', 'day_places'):
            if engine_config[key] < 0:
                raise ConfigError(f"ENGINE.{key} must be 0 or more", details={key: engine_config[key]})
        margin = engine_config['assumed_profit_margin']
        if not Decimal('0') <= margin <= Decimal('1'):
            raise ConfigError(
                "ENGINE.assumed_profit_margin must be between 0 and 1",
                details={'assumed_profit_margin': str(margin)}
            )
        return cls(
            money_places=engine_config['money_places'],
            day_places=engine_config['day_places'],
            assumed_profit_margin=engine_config['assumed_profit_margin']
        )

    def money(self, value) -> Optional[Decimal]:
        return quantize(value, self.money_places)

    def days(self, value) -> Optional[Decimal]:
        return quantize(value, self.day_places)


def _sortable(value) -> Tuple[bool, object]:
    # None sorts last without comparing against strings
    return (value is None, value if value is not None else '')


def _store_totals(snapshot: Snapshot) -> Dict[int, SalesTotals]:
    totals: Dict[int, SalesTotals] = {}
    for order in snapshot.rows('order'):
        lines = snapshot.lines_for(order.order_id)
        if not lines:
            continue
        snapshot.lookup('store', order.store_id, order)
        totals.setdefault(order.store_id, SalesTotals()).add_lines(lines)
    return totals


def sales_totals(snapshot: Snapshot) -> SalesTotals:
    """Unrounded totals over every order with lines, for company-wide figures."""
    overall = SalesTotals()
    for totals in _store_totals(snapshot).values():
        overall.merge(totals)
    return overall


def store_sales(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Orders, units, net sales and AOV per store."""
    rows = []
    for store_id, totals in sorted(_store_totals(snapshot).items()):
        store = snapshot.lookup('store', store_id)
        rows.append({
            'store_id': store.store_id,
            'store_name': store.store_name,
            'city': store.city,
            'state': store.state,
            'orders_cnt': totals.orders_cnt,
            'units_sold': totals.units_sold,
            'net_sales': settings.money(totals.net_sales),
            'aov': settings.money(safe_ratio(totals.net_sales, totals.orders_cnt)),
        })
    return rows


def region_sales(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Store sales rolled up by the store's state."""
    regions: Dict[Optional[str], SalesTotals] = {}
    for store_id, totals in _store_totals(snapshot).items():
        state = snapshot.lookup('store', store_id).state
        # Store groups never share orders
        regions.setdefault(state, SalesTotals()).merge(totals)

    rows = []
    for state in sorted(regions, key=_sortable):
        totals = regions[state]
        rows.append({
            'region': state,
            'orders_cnt': totals.orders_cnt,
            'units_sold': totals.units_sold,
            'net_sales': settings.money(totals.net_sales),
            'aov': settings.money(safe_ratio(totals.net_sales, totals.orders_cnt)),
        })
    return rows


def product_sales(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Units, net sales and average realised price per product."""
    totals: Dict[int, SalesTotals] = {}
    for line in snapshot.rows('order_line'):
        snapshot.lookup('product', line.product_id, line)
        totals.setdefault(line.product_id, SalesTotals()).add_line(line)

    rows = []
    for product_id, product_totals in sorted(totals.items()):
        product = snapshot.lookup('product', product_id)
        brand = snapshot.lookup('brand', product.brand_id, product)
        category = snapshot.lookup('category', product.category_id, product)
        rows.append({
            'product_id': product.product_id,
            'product_name': product.product_name,
            'brand_name': brand.brand_name,
            'category_name': category.category_name,
            'units_sold': product_totals.units_sold,
            'net_sales': settings.money(product_totals.net_sales),
            'avg_price_per_unit': settings.money(
                safe_ratio(product_totals.net_sales, product_totals.units_sold)
            ),
        })
    return rows


def category_brand_sales(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Units, net sales and average realised price per category and brand."""
    totals: Dict[Tuple[str, str], SalesTotals] = {}
    for line in snapshot.rows('order_line'):
        product = snapshot.lookup('product', line.product_id, line)
        category = snapshot.lookup('category', product.category_id, product)
        brand = snapshot.lookup('brand', product.brand_id, product)
        key = (category.category_name, brand.brand_name)
        totals.setdefault(key, SalesTotals()).add_line(line)

    rows = []
    for (category_name, brand_name), group in sorted(totals.items()):
        rows.append({
            'category_name': category_name,
            'brand_name': brand_name,
            'units_sold': group.units_sold,
            'net_sales': settings.money(group.net_sales),
            'avg_price_per_unit': settings.money(safe_ratio(group.net_sales, group.units_sold)),
        })
    return rows


def staff_performance(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Orders handled, net sales and shipping speed for every staff member.

    Staff without orders still get a row: zero orders and None for net
    sales and average fulfillment days.
    """
    orders_by_staff: Dict[int, list] = {}
    for order in snapshot.rows('order'):
        snapshot.lookup('staff', order.staff_id, order)
        orders_by_staff.setdefault(order.staff_id, []).append(order)

    rows = []
    for staff in snapshot.rows('staff'):
        orders = orders_by_staff.get(staff.staff_id, [])
        totals = SalesTotals()
        for order in orders:
            totals.add_lines(snapshot.lines_for(order.order_id))

        shipped_days = [
            fulfillment_days(order) for order in orders if order.shipped_date is not None
        ]
        rows.append({
            'staff_id': staff.staff_id,
            'staff_name': staff.full_name,
            'store_id': staff.store_id,
            'orders_handled': len(orders),
            'net_sales': settings.money(totals.net_sales_or_none()),
            'avg_fulfillment_days': settings.days(mean(shipped_days)),
        })
    return rows


def customer_frequency(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Spend and ordering cadence per customer.

    ``avg_days_between_orders`` divides the first-to-last span by
    ``orders_count - 1``, even when several orders share a date, and is None
    for single-order customers.
    """
    orders_by_customer: Dict[int, list] = {}
    for order in snapshot.rows('order'):
        if not snapshot.lines_for(order.order_id):
            continue
        snapshot.lookup('customer', order.customer_id, order)
        orders_by_customer.setdefault(order.customer_id, []).append(order)

    rows = []
    for customer_id, orders in sorted(orders_by_customer.items()):
        customer = snapshot.lookup('customer', customer_id)
        totals = SalesTotals()
        for order in orders:
            totals.add_lines(snapshot.lines_for(order.order_id))

        first_order_date = min(order.order_date for order in orders)
        last_order_date = max(order.order_date for order in orders)
        orders_count = totals.orders_cnt
        rows.append({
            'customer_id': customer.customer_id,
            'customer_name': customer.full_name,
            'orders_count': orders_count,
            'first_order_date': first_order_date,
            'last_order_date': last_order_date,
            'total_units': totals.units_sold,
            'total_spent': settings.money(totals.net_sales),
            'avg_order_value': settings.money(safe_ratio(totals.net_sales, orders_count)),
            'avg_days_between_orders': settings.days(
                safe_ratio((last_order_date - first_order_date).days, orders_count - 1)
            ),
        })
    return rows


def order_fulfillment(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Fulfillment status and shipping days for every order."""
    return [
        {
            'order_id': order.order_id,
            'order_date': order.order_date,
            'required_date': order.required_date,
            'shipped_date': order.shipped_date,
            'fulfillment_status': classify_fulfillment(order).value,
            'fulfillment_days': fulfillment_days(order),
        }
        for order in snapshot.rows('order')
    ]


def order_fulfillment_summary(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Order count and average shipping days per fulfillment status."""
    groups: Dict[FulfillmentStatus, List[Optional[int]]] = {}
    for order in snapshot.rows('order'):
        groups.setdefault(classify_fulfillment(order), []).append(fulfillment_days(order))

    rows = []
    for status in FulfillmentStatus:
        if status not in groups:
            continue
        days = groups[status]
        rows.append({
            'fulfillment_status': status.value,
            'orders_count': len(days),
            'avg_fulfillment_days': settings.days(mean(d for d in days if d is not None)),
        })
    return rows


def _stock_by_store(snapshot: Snapshot) -> Dict[int, list]:
    stocks: Dict[int, list] = {}
    for stock in snapshot.rows('stock'):
        snapshot.lookup('store', stock.store_id, stock)
        stocks.setdefault(stock.store_id, []).append(stock)
    return stocks


def inventory_snapshot(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Stock depth and breadth per store.

    Zero-quantity stock rows still count as a stocked product.
    """
    rows = []
    for store_id, stocks in sorted(_stock_by_store(snapshot).items()):
        store = snapshot.lookup('store', store_id)
        quantities = [stock.quantity for stock in stocks]
        rows.append({
            'store_id': store.store_id,
            'store_name': store.store_name,
            'total_stock_units': sum(quantities),
            'total_products_stocked': len({stock.product_id for stock in stocks}),
            'avg_stock_per_product': settings.money(mean(quantities)),
        })
    return rows


def inventory_store_efficiency(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Stock on hand against units sold, per store holding stock."""
    sold = {store_id: totals.units_sold for store_id, totals in _store_totals(snapshot).items()}

    rows = []
    for store_id, stocks in sorted(_stock_by_store(snapshot).items()):
        store = snapshot.lookup('store', store_id)
        total_stock_units = sum(stock.quantity for stock in stocks)
        total_units_sold = sold.get(store_id, 0)
        rows.append({
            'store_id': store.store_id,
            'store_name': store.store_name,
            'total_stock_units': total_stock_units,
            'total_units_sold': total_units_sold,
            'stock_to_sales_ratio': settings.money(safe_ratio(total_stock_units, total_units_sold)),
        })
    return rows


def inventory_category_efficiency(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Stock on hand against units sold, per store and product category.

    Stock and sales are summed separately and only then paired, so units
    sold only count order lines at that store whose product is in the
    category.
    """
    stock_units: Dict[Tuple[int, int], int] = {}
    for stock in snapshot.rows('stock'):
        snapshot.lookup('store', stock.store_id, stock)
        product = snapshot.lookup('product', stock.product_id, stock)
        key = (stock.store_id, product.category_id)
        stock_units[key] = stock_units.get(key, 0) + stock.quantity

    units_sold: Dict[Tuple[int, int], int] = {}
    for order in snapshot.rows('order'):
        for line in snapshot.lines_for(order.order_id):
            product = snapshot.lookup('product', line.product_id, line)
            key = (order.store_id, product.category_id)
            units_sold[key] = units_sold.get(key, 0) + line.quantity

    rows = []
    for (store_id, category_id), total_stock_units in sorted(stock_units.items()):
        store = snapshot.lookup('store', store_id)
        category = snapshot.lookup('category', category_id)
        total_units_sold = units_sold.get((store_id, category_id), 0)
        rows.append({
            'store_id': store.store_id,
            'store_name': store.store_name,
            'category_id': category.category_id,
            'category_name': category.category_name,
            'total_stock_units': total_stock_units,
            'total_units_sold': total_units_sold,
            'stock_to_sales_ratio': settings.money(safe_ratio(total_stock_units, total_units_sold)),
        })
    return rows


def store_profitability(snapshot: Snapshot, settings: EngineSettings) -> List[Row]:
    """Revenue, discounting and estimated profit per store.

    ``estimated_profit`` applies a flat assumed margin to net sales until
    cost-of-goods data exists, so ``profit_margin_pct`` simply restates that
    margin for stores with sales.
    """
    margin = settings.assumed_profit_margin

    rows = []
    for store_id, totals in sorted(_store_totals(snapshot).items()):
        store = snapshot.lookup('store', store_id)
        estimated_profit = totals.net_sales * margin
        rows.append({
            'store_id': store.store_id,
            'store_name': store.store_name,
            'city': store.city,
            'state': store.state,
            'total_orders': totals.orders_cnt,
            'total_units_sold': totals.units_sold,
            'gross_sales': settings.money(totals.gross_sales),
            'discount_amount': settings.money(totals.discount_amount),
            'net_sales': settings.money(totals.net_sales),
            'avg_discount_pct': settings.money(percentage(totals.discount_amount, totals.gross_sales)),
            'estimated_profit': settings.money(estimated_profit),
            'profit_margin_pct': settings.money(percentage(estimated_profit, totals.net_sales)),
            'avg_order_value': settings.money(safe_ratio(totals.net_sales, totals.orders_cnt)),
        })
    return rows


@dataclass(frozen=True)
class ViewDefinition:
    """A named derivation and the columns its rows carry."""

    name: str
    columns: Tuple[str, ...]
    derive: Callable[[Snapshot, EngineSettings], List[Row]]
    description: str = ''


VIEW_DEFINITIONS: Tuple[ViewDefinition, ...] = (
    ViewDefinition(
        'store_sales',
        ('store_id', 'store_name', 'city', 'state', 'orders_cnt', 'units_sold', 'net_sales', 'aov'),
        store_sales,
        'Store-wise sales'
    ),
    ViewDefinition(
        'region_sales',
        ('region', 'orders_cnt', 'units_sold', 'net_sales', 'aov'),
        region_sales,
        'Region (state) sales'
    ),
    ViewDefinition(
        'product_sales',
        ('product_id', 'product_name', 'brand_name', 'category_name', 'units_sold', 'net_sales',
         'avg_price_per_unit'),
        product_sales,
        'Product sales performance'
    ),
    ViewDefinition(
        'category_brand_sales',
        ('category_name', 'brand_name', 'units_sold', 'net_sales', 'avg_price_per_unit'),
        category_brand_sales,
        'Category x brand sales'
    ),
    ViewDefinition(
        'staff_performance',
        ('staff_id', 'staff_name', 'store_id', 'orders_handled', 'net_sales', 'avg_fulfillment_days'),
        staff_performance,
        'Staff performance'
    ),
    ViewDefinition(
        'customer_frequency',
        ('customer_id', 'customer_name', 'orders_count', 'first_order_date', 'last_order_date',
         'total_units', 'total_spent', 'avg_order_value', 'avg_days_between_orders'),
        customer_frequency,
        'Customer orders and frequency'
    ),
    ViewDefinition(
        'order_fulfillment',
        ('order_id', 'order_date', 'required_date', 'shipped_date', 'fulfillment_status',
         'fulfillment_days'),
        order_fulfillment,
        'Order fulfillment status'
    ),
    ViewDefinition(
        'order_fulfillment_summary',
        ('fulfillment_status', 'orders_count', 'avg_fulfillment_days'),
        order_fulfillment_summary,
        'Fulfillment status summary'
    ),
    ViewDefinition(
        'inventory_snapshot',
        ('store_id', 'store_name', 'total_stock_units', 'total_products_stocked',
         'avg_stock_per_product'),
        inventory_snapshot,
        'Inventory snapshot per store'
    ),
    ViewDefinition(
        'inventory_store_efficiency',
        ('store_id', 'store_name', 'total_stock_units', 'total_units_sold', 'stock_to_sales_ratio'),
        inventory_store_efficiency,
        'Inventory efficiency per store'
    ),
    ViewDefinition(
        'inventory_category_efficiency',
        ('store_id', 'store_name', 'category_id', 'category_name', 'total_stock_units',
         'total_units_sold', 'stock_to_sales_ratio'),
        inventory_category_efficiency,
        'Inventory efficiency per store and category'
    ),
    ViewDefinition(
        'store_profitability',
        ('store_id', 'store_name', 'city', 'state', 'total_orders', 'total_units_sold', 'gross_sales',
         'discount_amount', 'net_sales', 'avg_discount_pct', 'estimated_profit', 'profit_margin_pct',
         'avg_order_value'),
        store_profitability,
        'Store profitability (assumed margin)'
    ),
)
