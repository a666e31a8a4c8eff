"""
Unit tests for the view registry.
"""
import json
import unittest
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from retail_analytics.core.derivations import VIEW_DEFINITIONS
from retail_analytics.entities import Brand, Category, Customer, Order, OrderLine, Product, Staff
from retail_analytics.exceptions import IntegrityError, ViewNotFoundError
from retail_analytics.services.view_registry import ViewRegistry
from retail_analytics.store import Snapshot
from retail_analytics.tests.helpers import quiet_config, sample_store

EXPECTED_VIEWS = [
    'store_sales',
    'region_sales',
    'product_sales',
    'category_brand_sales',
    'staff_performance',
    'customer_frequency',
    'order_fulfillment',
    'order_fulfillment_summary',
    'inventory_snapshot',
    'inventory_store_efficiency',
    'inventory_category_efficiency',
    'store_profitability',
]


def broken_snapshot():
    """Snapshot whose only order points at a store that does not exist."""
    return Snapshot.from_records([
        Brand(1, 'Trek'),
        Category(1, 'Road Bikes'),
        Product(1, 'Domane', brand_id=1, category_id=1, list_price=Decimal('10.00')),
        Customer(1, 'Debra', 'Burks'),
        Staff(1, 'Fabiola', 'Jackson', store_id=9),
        Order(1, customer_id=1, order_status='4', order_date=date(2024, 1, 1), store_id=9, staff_id=1),
        OrderLine(1, 1, product_id=1, quantity=1, list_price=Decimal('10.00')),
    ], version=99)


class TestViewRegistry(unittest.TestCase):
    """Test cases for ViewRegistry."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = sample_store()
        self.registry = ViewRegistry(self.store, quiet_config(parallel_refresh=False))

    def test_registers_all_views(self):
        self.assertEqual(self.registry.view_names(), EXPECTED_VIEWS)
        self.assertEqual(len(VIEW_DEFINITIONS), 12)

    def test_unknown_view(self):
        with self.assertRaises(ViewNotFoundError) as ctx:
            self.registry.query('store_salez')
        self.assertEqual(ctx.exception.code, 'VIEW_NOT_FOUND')
        self.assertIn('store_sales', ctx.exception.details['available'])

    def test_refresh_sees_new_data(self):
        before = self.registry.refresh('store_sales')
        self.store.delete_order(3)
        after = self.registry.refresh('store_sales')

        self.assertEqual(len(before), 2)
        self.assertEqual([row['store_id'] for row in after.rows], [1])
        self.assertGreater(after.snapshot_version, before.snapshot_version)

    def test_repeated_refresh_is_identical(self):
        first = self.registry.refresh('customer_frequency')
        second = self.registry.refresh('customer_frequency')

        self.assertEqual(first, second)
        self.assertEqual(first.to_json(), second.to_json())

    def test_query_does_not_touch_cache(self):
        result = self.registry.query('region_sales')

        self.assertIsNone(self.registry.cached('region_sales'))
        self.assertEqual(result.to_json(), self.registry.refresh('region_sales').to_json())
        self.assertIsNotNone(self.registry.cached('region_sales'))

    def test_get_uses_cache_until_invalidated(self):
        cached = self.registry.get('product_sales')
        self.store.delete_order(1)

        self.assertIs(self.registry.get('product_sales'), cached)
        self.registry.invalidate('product_sales')
        self.assertIsNot(self.registry.get('product_sales'), cached)

    def test_result_rows_are_read_only(self):
        result = self.registry.query('store_sales')
        with self.assertRaises(TypeError):
            result.rows[0]['net_sales'] = Decimal('0')

    def test_to_json_formats_decimals_and_dates(self):
        payload = json.loads(self.registry.query('order_fulfillment').to_json())

        self.assertEqual(payload['view'], 'order_fulfillment')
        first = payload['rows'][0]
        self.assertEqual(first['order_date'], '2024-01-01')
        self.assertEqual(first['fulfillment_status'], 'On Time')

        payload = json.loads(self.registry.query('store_sales').to_json())
        self.assertEqual(payload['rows'][0]['net_sales'], '38.00')

    def test_refresh_all(self):
        summary = self.registry.refresh_all()

        self.assertTrue(summary.success)
        self.assertEqual(list(summary.refreshed), EXPECTED_VIEWS)
        self.assertEqual(summary.snapshot_version, self.store.version)
        for name in EXPECTED_VIEWS:
            self.assertIs(self.registry.cached(name), summary.refreshed[name])

    def test_parallel_refresh_matches_sequential(self):
        parallel = ViewRegistry(self.store, quiet_config(parallel_refresh=True, max_workers=4))

        sequential_summary = self.registry.refresh_all()
        parallel_summary = parallel.refresh_all()

        for name in EXPECTED_VIEWS:
            with self.subTest(view=name):
                self.assertEqual(
                    parallel_summary.refreshed[name].to_json(),
                    sequential_summary.refreshed[name].to_json()
                )

    def test_refresh_all_isolates_failures(self):
        with patch.object(self.store, 'snapshot', return_value=broken_snapshot()):
            summary = self.registry.refresh_all()

        self.assertFalse(summary.success)
        self.assertEqual(
            sorted(summary.failed),
            ['inventory_store_efficiency', 'region_sales', 'store_profitability', 'store_sales']
        )
        self.assertIsInstance(summary.failed['store_sales'], IntegrityError)
        self.assertIn('product_sales', summary.refreshed)
        self.assertEqual(summary.refreshed['product_sales'].snapshot_version, 99)
        self.assertIsNone(self.registry.cached('store_sales'))

    def test_refresh_raises_integrity_error(self):
        with patch.object(self.store, 'snapshot', return_value=broken_snapshot()):
            with self.assertRaises(IntegrityError):
                self.registry.refresh('store_sales')
        self.assertIsNone(self.registry.cached('store_sales'))

    def test_engine_settings_follow_config(self):
        registry = ViewRegistry(self.store, quiet_config(money_places=1, assumed_profit_margin='0.5'))
        rows = {row['store_id']: row for row in registry.query('store_profitability').rows}

        self.assertEqual(rows[2]['estimated_profit'], Decimal('55.0'))
        self.assertEqual(str(rows[1]['avg_order_value']), '19.0')


if __name__ == '__main__':
    unittest.main()
