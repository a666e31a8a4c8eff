"""Shared fixtures for the retail analytics tests.

Sample data (amounts in dollars):

    Store 1 (CA): O1 2 x 10.00 no discount, O2 1 x 20.00 at 10% -> net 38.00
    Store 2 (NY): O3 1 x 100.00 at 20% + 3 x 10.00 -> net 110.00,
                  O4 shipped without lines
    Store 3 (TX): no orders, no stock
"""
import os
import tempfile
from datetime import date
from decimal import Decimal

from retail_analytics.config import Config
from retail_analytics.entities import (
    Brand, Category, Product, Store, Stock, Customer, Staff, Order, OrderLine
)
from retail_analytics.logging_setup import configure_logging
from retail_analytics.store import EntityStore


def quiet_config(**engine_overrides):
    """Config with file and console logging off, plus optional ENGINE overrides."""
    settings = Config(os.path.join(tempfile.mkdtemp(), 'settings.ini'))
    settings.set('LOGGING', 'file_output', False)
    settings.set('LOGGING', 'console_output', False)
    for key, value in engine_overrides.items():
        settings.set('ENGINE', key, value)
    configure_logging(settings)
    return settings


def reference_records():
    """Brands, categories, products, stores, staff and customers."""
    return [
        Brand(1, 'Trek'),
        Brand(2, 'Electra'),
        Category(1, 'Mountain Bikes'),
        Category(2, 'Road Bikes'),
        Product(10, 'Trek Marlin', brand_id=1, category_id=1, list_price=Decimal('100.00'), model_year=2024),
        Product(11, 'Electra Townie', brand_id=2, category_id=2, list_price=Decimal('20.00'), model_year=2023),
        Product(12, 'Trek Domane', brand_id=1, category_id=2, list_price=Decimal('10.00'), model_year=2024),
        Store(1, 'Santa Cruz Bikes', city='Santa Cruz', state='CA'),
        Store(2, 'Baldwin Bikes', city='Baldwin', state='NY'),
        Store(3, 'Rowlett Bikes', city='Rowlett', state='TX'),
        Staff(1, 'Fabiola', 'Jackson', store_id=1),
        Staff(2, 'Mireya', 'Copeland', store_id=1, manager_id=1),
        Staff(3, 'Genna', 'Serrano', store_id=2, manager_id=1),
        Staff(4, 'Virgie', 'Wiggins', store_id=3, manager_id=1, active=False),
        Customer(1, 'Debra', 'Burks', state='NY'),
        Customer(2, 'Kasha', 'Todd', state='CA'),
        Customer(3, 'Tameka', 'Fisher', state='CA'),
    ]


def transaction_records():
    """Orders, order lines and stock rows."""
    return [
        Order(1, customer_id=2, order_status='4', order_date=date(2024, 1, 1), store_id=1, staff_id=2,
              required_date=date(2024, 1, 5), shipped_date=date(2024, 1, 3)),
        Order(2, customer_id=2, order_status='1', order_date=date(2024, 1, 11), store_id=1, staff_id=2,
              required_date=date(2024, 1, 15)),
        Order(3, customer_id=1, order_status='4', order_date=date(2024, 1, 1), store_id=2, staff_id=3,
              required_date=date(2024, 1, 10), shipped_date=date(2024, 1, 15)),
        Order(4, customer_id=1, order_status='4', order_date=date(2024, 2, 1), store_id=2, staff_id=3,
              shipped_date=date(2024, 2, 4)),
        OrderLine(1, 1, product_id=12, quantity=2, list_price=Decimal('10.00')),
        OrderLine(2, 1, product_id=11, quantity=1, list_price=Decimal('20.00'), discount=Decimal('0.10')),
        OrderLine(3, 1, product_id=10, quantity=1, list_price=Decimal('100.00'), discount=Decimal('0.20')),
        OrderLine(3, 2, product_id=12, quantity=3, list_price=Decimal('10.00')),
        Stock(1, 10, 5),
        Stock(1, 11, 0),
        Stock(1, 12, 7),
        Stock(2, 10, 4),
        Stock(2, 12, 0),
    ]


def sample_store():
    """EntityStore loaded with the sample data."""
    store = EntityStore()
    store.insert_many(reference_records())
    store.insert_many(transaction_records())
    return store


def rows_by(rows, key):
    """Index view rows by one column."""
    return {row[key]: row for row in rows}
