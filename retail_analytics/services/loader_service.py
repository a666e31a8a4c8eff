# retail_analytics/services/loader_service.py
import logging
from dataclasses import MISSING, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from retail_analytics.entities import (
    Brand, Category, Product, Store, Stock, Customer, Staff, Order, OrderLine
)
from retail_analytics.exceptions import LoadError
from retail_analytics.store import EntityStore, managers_first
from retail_analytics.utils.date_utils import convert_to_date

logger = logging.getLogger(__name__)

# Files are loaded in this order so references always resolve
LOAD_ORDER = (
    ('brands.csv', Brand),
    ('categories.csv', Category),
    ('products.csv', Product),
    ('stores.csv', Store),
    ('staffs.csv', Staff),
    ('customers.csv', Customer),
    ('orders.csv', Order),
    ('order_items.csv', OrderLine),
    ('stocks.csv', Stock),
)

INT_FIELDS = {
    'brand_id', 'category_id', 'product_id', 'store_id', 'customer_id', 'staff_id',
    'manager_id', 'order_id', 'item_id', 'quantity', 'model_year'
}
DECIMAL_FIELDS = {'list_price', 'discount'}
DATE_FIELDS = {'order_date', 'required_date', 'shipped_date'}
BOOL_FIELDS = {'active'}

NULL_MARKERS = {'', 'null', 'none', 'nan'}
TRUE_VALUES = {'1', 'true', 't', 'yes', 'y'}
FALSE_VALUES = {'0', 'false', 'f', 'no', 'n'}


def convert_value(field_name: str, raw: Optional[str]):
    """Convert one CSV cell to the type of the entity field it feeds.

    Args:
        field_name: Entity field name
        raw: Cell text

    Returns:
        Converted value, or None for empty and NULL cells

    Raises:
        ValueError: If the text cannot be converted
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if text.lower() in NULL_MARKERS:
        return None

    if field_name in INT_FIELDS:
        return int(text)
    if field_name in DECIMAL_FIELDS:
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"{field_name} must be numeric, got {text!r}")
        if not value.is_finite():
            raise ValueError(f"{field_name} must be a finite number, got {text!r}")
        return value
    if field_name in DATE_FIELDS:
        return convert_to_date(text)
    if field_name in BOOL_FIELDS:
        lowered = text.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ValueError(f"{field_name} must be a boolean, got {text!r}")
    return text


class LoaderService:
    """Loads a directory of CSV exports into an entity store."""

    def __init__(self, store: EntityStore):
        """Initialize the loader.

        Args:
            store: Entity store to populate
        """
        self.store = store

    def read_records(self, path: Union[str, Path], entity_class) -> List[object]:
        """Parse one CSV file into entity records.

        Args:
            path: CSV file path
            entity_class: Entity record class the rows describe

        Returns:
            List of entity records

        Raises:
            LoadError: If the file cannot be read or a row cannot be converted
        """
        path = Path(path)
        try:
            frame = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise LoadError(f"Could not read {path}: {str(e)}", details={'file': str(path)})

        frame.columns = [str(column).strip().lower() for column in frame.columns]
        entity_fields = fields(entity_class)

        missing = [
            f.name for f in entity_fields
            if f.default is MISSING and f.name not in frame.columns
        ]
        if missing:
            raise LoadError(
                f"{path.name} is missing required column(s): {', '.join(missing)}",
                details={'file': str(path), 'missing_columns': missing}
            )

        records = []
        for row_number, row in enumerate(frame.to_dict(orient='records'), start=2):
            values = {}
            try:
                for f in entity_fields:
                    value = convert_value(f.name, row.get(f.name))
                    # Blank optional cells fall back to the field default
                    if value is None and f.default is not MISSING:
                        continue
                    values[f.name] = value
            except ValueError as e:
                raise LoadError(
                    f"{path.name} row {row_number}: {str(e)}",
                    details={'file': str(path), 'row_number': row_number}
                )
            records.append(entity_class(**values))

        return records

    def load_directory(self, directory: Union[str, Path]) -> Dict[str, int]:
        """Load every known CSV file found in a directory.

        Missing files are skipped with a warning. Store errors (integrity,
        invariant, duplicate key) propagate unchanged.

        Args:
            directory: Directory holding the CSV exports

        Returns:
            Dictionary with the number of records loaded per entity kind
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise LoadError(f"Not a directory: {directory}", details={'directory': str(directory)})

        loaded = {}
        for file_name, entity_class in LOAD_ORDER:
            path = directory / file_name
            if not path.exists():
                logger.warning(f"{file_name} not found in {directory}, skipping")
                continue

            records = self.read_records(path, entity_class)
            if entity_class is Staff:
                records = managers_first(records)
            loaded[entity_class.kind] = self.store.insert_many(records)
            logger.info(f"Loaded {loaded[entity_class.kind]} {entity_class.kind} record(s) from {file_name}")

        return loaded
