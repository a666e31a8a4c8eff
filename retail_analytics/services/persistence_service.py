# retail_analytics/services/persistence_service.py
import logging
from dataclasses import fields
from typing import Dict

from sqlalchemy.orm import Session

from retail_analytics.entities import (
    Brand, Category, Product, Store, Stock, Customer, Staff, Order, OrderLine
)
from retail_analytics.exceptions import DatabaseError
from retail_analytics.models import (
    BrandModel, CategoryModel, ProductModel, StoreModel, StockModel,
    CustomerModel, StaffModel, OrderModel, OrderItemModel
)
from retail_analytics.store import EntityStore, managers_first

logger = logging.getLogger(__name__)

# Dependency order: every kind appears after the kinds it references
ENTITY_MODELS = (
    (Brand, BrandModel),
    (Category, CategoryModel),
    (Product, ProductModel),
    (Store, StoreModel),
    (Stock, StockModel),
    (Customer, CustomerModel),
    (Staff, StaffModel),
    (Order, OrderModel),
    (OrderLine, OrderItemModel),
)


def entity_to_model(entity, model_class):
    """Copy an entity record into a new ORM instance."""
    return model_class(**{f.name: getattr(entity, f.name) for f in fields(entity)})


def model_to_entity(model, entity_class):
    """Build an entity record from an ORM instance."""
    return entity_class(**{f.name: getattr(model, f.name) for f in fields(entity_class)})


class PersistenceService:
    """Moves entities between the entity store and the relational schema."""

    def __init__(self, session: Session):
        """Initialize the persistence service.

        Args:
            session: Database session
        """
        self.session = session

    def save_store(self, store: EntityStore) -> Dict[str, int]:
        """Write every entity in the store's current snapshot.

        Args:
            store: Entity store to save

        Returns:
            Dictionary with the number of rows written per entity kind
        """
        snapshot = store.snapshot()
        written = {}

        try:
            for entity_class, model_class in ENTITY_MODELS:
                records = snapshot.rows(entity_class.kind)
                if entity_class is Staff:
                    records = managers_first(records)
                self.session.add_all(entity_to_model(record, model_class) for record in records)
                # Flush per table so self references and foreign keys resolve in order
                self.session.flush()
                written[entity_class.kind] = len(records)
        except Exception as e:
            logger.error(f"Error saving entity store: {str(e)}")
            raise DatabaseError(f"Failed to save entity store: {str(e)}")

        logger.info(f"Saved snapshot {snapshot.version}: {written}")
        return written

    def load_store(self, store: EntityStore) -> Dict[str, int]:
        """Read every table into the store, re-checking all invariants.

        Args:
            store: Entity store to populate

        Returns:
            Dictionary with the number of rows loaded per entity kind
        """
        loaded = {}

        for entity_class, model_class in ENTITY_MODELS:
            try:
                models = self.session.query(model_class).all()
            except Exception as e:
                logger.error(f"Error reading {model_class.__tablename__}: {str(e)}")
                raise DatabaseError(f"Failed to read {model_class.__tablename__}: {str(e)}")

            records = [model_to_entity(model, entity_class) for model in models]
            if entity_class is Staff:
                records = managers_first(records)
            loaded[entity_class.kind] = store.insert_many(records)

        logger.info(f"Loaded entities from database: {loaded}")
        return loaded
