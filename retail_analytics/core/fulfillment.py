from typing import Optional

from retail_analytics.entities import FulfillmentStatus, Order
from retail_analytics.utils.date_utils import days_between


def classify_fulfillment(order: Order) -> FulfillmentStatus:
    """Classify an order's shipment against its required date.

    Rules are checked in order and the first match wins:
    no ship date is Pending, no required date is Shipped (No SLA), shipping on
    or before the required date is On Time, anything else is Late.

    Args:
        order: Order to classify

    Returns:
        FulfillmentStatus
    """
    if order.shipped_date is None:
        return FulfillmentStatus.PENDING
    if order.required_date is None:
        return FulfillmentStatus.SHIPPED_NO_SLA
    if order.shipped_date <= order.required_date:
        return FulfillmentStatus.ON_TIME
    return FulfillmentStatus.LATE


def fulfillment_days(order: Order) -> Optional[int]:
    """Days from order to shipment, None while the order is unshipped."""
    return days_between(order.order_date, order.shipped_date)
