"""Immutable entity records held by the entity store.

Records are frozen dataclasses so a snapshot can hand them out without
copying. Money fields are ``Decimal`` and dates are ``datetime.date``.
"""
import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional, Tuple, Union

Key = Union[int, Tuple[int, int]]


class FulfillmentStatus(enum.Enum):
    """Shipment status of an order against its required date.

    Values:
        PENDING: Not shipped yet
        SHIPPED_NO_SLA: Shipped, but the order carries no required date
        ON_TIME: Shipped on or before the required date
        LATE: Shipped after the required date
    """
    PENDING = 'Pending'
    SHIPPED_NO_SLA = 'Shipped (No SLA)'
    ON_TIME = 'On Time'
    LATE = 'Late'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value


@dataclass(frozen=True)
class Brand:
    kind: ClassVar[str] = 'brand'

    brand_id: int
    brand_name: str

    @property
    def key(self) -> Key:
        return self.brand_id


@dataclass(frozen=True)
class Category:
    kind: ClassVar[str] = 'category'

    category_id: int
    category_name: str

    @property
    def key(self) -> Key:
        return self.category_id


@dataclass(frozen=True)
class Product:
    kind: ClassVar[str] = 'product'

    product_id: int
    product_name: str
    brand_id: int
    category_id: int
    list_price: Decimal
    model_year: Optional[int] = None

    @property
    def key(self) -> Key:
        return self.product_id


@dataclass(frozen=True)
class Store:
    kind: ClassVar[str] = 'store'

    store_id: int
    store_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @property
    def key(self) -> Key:
        return self.store_id


@dataclass(frozen=True)
class Stock:
    kind: ClassVar[str] = 'stock'

    store_id: int
    product_id: int
    quantity: int

    @property
    def key(self) -> Key:
        return (self.store_id, self.product_id)


@dataclass(frozen=True)
class Customer:
    kind: ClassVar[str] = 'customer'

    customer_id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @property
    def key(self) -> Key:
        return self.customer_id

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Staff:
    kind: ClassVar[str] = 'staff'

    staff_id: int
    first_name: str
    last_name: str
    store_id: int
    active: bool = True
    manager_id: Optional[int] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def key(self) -> Key:
        return self.staff_id

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Order:
    kind: ClassVar[str] = 'order'

    order_id: int
    customer_id: int
    order_status: str
    order_date: date
    store_id: int
    staff_id: int
    required_date: Optional[date] = None
    shipped_date: Optional[date] = None

    @property
    def key(self) -> Key:
        return self.order_id


@dataclass(frozen=True)
class OrderLine:
    kind: ClassVar[str] = 'order_line'

    order_id: int
    item_id: int
    product_id: int
    quantity: int
    list_price: Decimal
    discount: Decimal = Decimal('0')

    @property
    def key(self) -> Key:
        return (self.order_id, self.item_id)


ENTITY_TYPES = (Brand, Category, Product, Store, Stock, Customer, Staff, Order, OrderLine)
ENTITY_KINDS = tuple(entity_type.kind for entity_type in ENTITY_TYPES)
