from dataclasses import MISSING, fields
from decimal import Decimal
from typing import Dict

from retail_analytics.entities import (
    Brand, Category, Product, Store, Stock, Customer, Staff, Order, OrderLine
)

MIN_MODEL_YEAR = 1900
MAX_MODEL_YEAR = 2100


def _blank(value) -> bool:
    return value is None or str(value).strip() == ''


def _finite_decimal(value) -> bool:
    # Rejects NaN and Infinity
    return isinstance(value, Decimal) and value.is_finite()


def validate_brand(brand: Brand) -> Dict[str, str]:
    """Validate a brand.

    Args:
        brand: Brand to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if _blank(brand.brand_name):
        errors['brand_name'] = 'Brand name is required'

    return errors


def validate_category(category: Category) -> Dict[str, str]:
    errors = {}

    if _blank(category.category_name):
        errors['category_name'] = 'Category name is required'

    return errors


def validate_product(product: Product) -> Dict[str, str]:
    """Validate a product.

    Args:
        product: Product to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if _blank(product.product_name):
        errors['product_name'] = 'Product name is required'

    if not _finite_decimal(product.list_price) or not product.list_price > 0:
        errors['list_price'] = 'List price must be a finite Decimal greater than 0'

    if product.model_year is not None and not MIN_MODEL_YEAR <= product.model_year <= MAX_MODEL_YEAR:
        errors['model_year'] = f'Model year must be between {MIN_MODEL_YEAR} and {MAX_MODEL_YEAR}'

    return errors


def validate_store(store: Store) -> Dict[str, str]:
    errors = {}

    if _blank(store.store_name):
        errors['store_name'] = 'Store name is required'

    return errors


def validate_stock(stock: Stock) -> Dict[str, str]:
    errors = {}

    if stock.quantity is None or stock.quantity < 0:
        errors['quantity'] = 'Stock quantity must be 0 or more'

    return errors


def validate_customer(customer: Customer) -> Dict[str, str]:
    errors = {}

    if _blank(customer.first_name):
        errors['first_name'] = 'First name is required'

    if _blank(customer.last_name):
        errors['last_name'] = 'Last name is required'

    return errors


def validate_staff(staff: Staff) -> Dict[str, str]:
    errors = {}

    if _blank(staff.first_name):
        errors['first_name'] = 'First name is required'

    if _blank(staff.last_name):
        errors['last_name'] = 'Last name is required'

    if staff.manager_id is not None and staff.manager_id == staff.staff_id:
        errors['manager_id'] = 'Staff member cannot manage themselves'

    return errors


def validate_order(order: Order) -> Dict[str, str]:
    """Validate an order.

    Args:
        order: Order to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if _blank(order.order_status):
        errors['order_status'] = 'Order status is required'

    if order.order_date is None:
        errors['order_date'] = 'Order date is required'
        return errors

    if order.required_date is not None and order.required_date < order.order_date:
        errors['required_date'] = 'Required date cannot be before order date'

    if order.shipped_date is not None and order.shipped_date < order.order_date:
        errors['shipped_date'] = 'Shipped date cannot be before order date'

    return errors


def validate_order_line(line: OrderLine) -> Dict[str, str]:
    """Validate an order line.

    Args:
        line: Order line to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if line.quantity is None or line.quantity <= 0:
        errors['quantity'] = 'Quantity must be greater than 0'

    if not _finite_decimal(line.list_price) or not line.list_price > 0:
        errors['list_price'] = 'List price must be a finite Decimal greater than 0'

    if not _finite_decimal(line.discount) or not Decimal('0') <= line.discount <= Decimal('1'):
        errors['discount'] = 'Discount must be a Decimal between 0 and 1'

    return errors


VALIDATORS = {
    Brand.kind: validate_brand,
    Category.kind: validate_category,
    Product.kind: validate_product,
    Store.kind: validate_store,
    Stock.kind: validate_stock,
    Customer.kind: validate_customer,
    Staff.kind: validate_staff,
    Order.kind: validate_order,
    OrderLine.kind: validate_order_line,
}


def validate_entity(entity) -> Dict[str, str]:
    """Check required fields, then run the checks registered for the entity's kind."""
    errors = {
        f.name: f"{f.name} is required"
        for f in fields(entity)
        if f.default is MISSING and getattr(entity, f.name) is None
    }
    if errors:
        return errors
    return VALIDATORS[entity.kind](entity)
