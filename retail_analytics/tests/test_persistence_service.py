"""
Unit tests for the persistence service and database schema.
"""
import unittest
from decimal import Decimal

from sqlalchemy import delete, inspect

from retail_analytics.db import DatabaseConnection
from retail_analytics.entities import Brand
from retail_analytics.exceptions import DatabaseError
from retail_analytics.models import OrderItemModel, OrderModel, ProductModel
from retail_analytics.services.persistence_service import PersistenceService
from retail_analytics.services.view_registry import ViewRegistry
from retail_analytics.store import EntityStore
from retail_analytics.tests.helpers import quiet_config, sample_store


class TestPersistenceService(unittest.TestCase):
    """Test cases for PersistenceService against in-memory SQLite."""

    def setUp(self):
        """Set up test fixtures."""
        self.settings = quiet_config(parallel_refresh=False)
        self.database = DatabaseConnection(self.settings, url='sqlite://')
        self.database.create_all_tables()

    def tearDown(self):
        """Tear down test fixtures."""
        self.database.drop_all_tables()
        self.database.dispose()

    def test_create_all_tables(self):
        tables = set(inspect(self.database.engine).get_table_names())

        self.assertEqual(tables, {
            'brands', 'categories', 'products', 'stocks', 'stores',
            'customers', 'staffs', 'orders', 'order_items'
        })
        self.database.test_connection()

    def test_save_store(self):
        with self.database.session_scope() as session:
            written = PersistenceService(session).save_store(sample_store())

        self.assertEqual(written['order_line'], 4)
        self.assertEqual(written['staff'], 4)

        with self.database.session_scope() as session:
            product = session.get(ProductModel, 10)
            self.assertEqual(product.list_price, Decimal('100.00'))
            self.assertEqual(product.brand.brand_name, 'Trek')

    def test_round_trip_gives_identical_views(self):
        original = sample_store()
        with self.database.session_scope() as session:
            PersistenceService(session).save_store(original)

        restored = EntityStore()
        with self.database.session_scope() as session:
            loaded = PersistenceService(session).load_store(restored)

        self.assertEqual(loaded['order'], 4)
        self.assertEqual(restored.snapshot().table('staff')[2].manager_id, 1)
        self.assertFalse(restored.snapshot().table('staff')[4].active)

        before = ViewRegistry(original, self.settings).refresh_all()
        after = ViewRegistry(restored, self.settings).refresh_all()
        for name, result in before.refreshed.items():
            with self.subTest(view=name):
                self.assertEqual(after.refreshed[name].to_json(), result.to_json())

    def test_deleting_an_order_removes_its_items(self):
        with self.database.session_scope() as session:
            PersistenceService(session).save_store(sample_store())

        with self.database.session_scope() as session:
            session.execute(delete(OrderModel).where(OrderModel.order_id == 3))

        with self.database.session_scope() as session:
            self.assertEqual(session.query(OrderItemModel).filter_by(order_id=3).count(), 0)
            self.assertEqual(session.query(OrderItemModel).count(), 2)

    def test_orm_delete_cascades_to_items(self):
        with self.database.session_scope() as session:
            PersistenceService(session).save_store(sample_store())

        with self.database.session_scope() as session:
            session.delete(session.get(OrderModel, 1))

        with self.database.session_scope() as session:
            self.assertEqual(session.query(OrderItemModel).filter_by(order_id=1).count(), 0)

    def test_save_twice_raises_database_error(self):
        store = EntityStore()
        store.insert(Brand(1, 'Trek'))
        with self.database.session_scope() as session:
            PersistenceService(session).save_store(store)

        with self.assertRaises(DatabaseError):
            with self.database.session_scope() as session:
                PersistenceService(session).save_store(store)


if __name__ == '__main__':
    unittest.main()
