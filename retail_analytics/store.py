"""In-memory entity store with referential integrity checks.

Inserts are validated completely before anything is written, so a rejected
record never leaves partial state behind. Readers work from immutable
``Snapshot`` objects and never see the store's own dictionaries.
"""
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from retail_analytics.entities import (
    ENTITY_KINDS, ENTITY_TYPES, Key, OrderLine
)
from retail_analytics.exceptions import (
    DuplicateKeyError, IntegrityError, InvariantViolation
)
from retail_analytics.utils.validation import validate_entity

logger = logging.getLogger(__name__)

# kind -> [(referenced kind, attribute holding the referenced key)]
REFERENCES: Dict[str, List[Tuple[str, str]]] = {
    'brand': [],
    'category': [],
    'product': [('brand', 'brand_id'), ('category', 'category_id')],
    'store': [],
    'stock': [('store', 'store_id'), ('product', 'product_id')],
    'customer': [],
    'staff': [('store', 'store_id'), ('staff', 'manager_id')],
    'order': [('customer', 'customer_id'), ('store', 'store_id'), ('staff', 'staff_id')],
    'order_line': [('order', 'order_id'), ('product', 'product_id')],
}


def managers_first(staff_records: Iterable[object]) -> List[object]:
    """Order staff so every manager comes before the people reporting to them.

    Records whose manager is not in the input keep their relative order and
    are placed as soon as possible; the store decides whether that manager
    exists.
    """
    pending = list(staff_records)
    present = {record.staff_id for record in pending}
    placed = set()
    ordered = []

    while pending:
        remaining = []
        for record in pending:
            manager_id = record.manager_id
            if manager_id is None or manager_id in placed or manager_id not in present:
                ordered.append(record)
                placed.add(record.staff_id)
            else:
                remaining.append(record)
        if len(remaining) == len(pending):
            # A cycle; let the store reject it
            ordered.extend(remaining)
            break
        pending = remaining

    return ordered


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time, read-only view of every entity in a store."""

    version: int
    tables: Mapping[str, Mapping[Key, object]]
    lines_by_order: Mapping[int, Tuple[OrderLine, ...]]

    @classmethod
    def build(cls, tables: Mapping[str, Mapping[Key, object]], version: int = 0) -> 'Snapshot':
        """Freeze a set of entity tables into a snapshot.

        Args:
            tables: Mapping of entity kind to {key: record}; missing kinds are empty
            version: Store version the tables were taken at

        Returns:
            Snapshot instance
        """
        frozen = {
            kind: MappingProxyType(dict(tables.get(kind, {})))
            for kind in ENTITY_KINDS
        }

        grouped: Dict[int, List[OrderLine]] = {}
        for line in frozen['order_line'].values():
            grouped.setdefault(line.order_id, []).append(line)
        lines_by_order = {
            order_id: tuple(sorted(lines, key=lambda line: line.item_id))
            for order_id, lines in grouped.items()
        }

        return cls(
            version=version,
            tables=MappingProxyType(frozen),
            lines_by_order=MappingProxyType(lines_by_order)
        )

    @classmethod
    def from_records(cls, records: Iterable[object], version: int = 0) -> 'Snapshot':
        """Build a snapshot straight from records, without integrity checks."""
        tables: Dict[str, Dict[Key, object]] = {kind: {} for kind in ENTITY_KINDS}
        for record in records:
            tables[record.kind][record.key] = record
        return cls.build(tables, version)

    def table(self, kind: str) -> Mapping[Key, object]:
        return self.tables[kind]

    def rows(self, kind: str) -> List[object]:
        """Records of one kind ordered by key."""
        table = self.tables[kind]
        return [table[key] for key in sorted(table)]

    def lookup(self, kind: str, key: Key, referrer: Optional[object] = None):
        """Fetch a referenced record or raise IntegrityError.

        Args:
            kind: Entity kind to look up
            key: Primary key
            referrer: Record holding the reference, for error context

        Returns:
            The referenced record
        """
        try:
            return self.tables[kind][key]
        except KeyError:
            details = {'kind': kind, 'key': key}
            if referrer is not None:
                details['referrer'] = {'kind': referrer.kind, 'key': referrer.key}
            raise IntegrityError(f"{kind} {key!r} is missing from the snapshot", details=details)

    def lines_for(self, order_id: int) -> Tuple[OrderLine, ...]:
        return self.lines_by_order.get(order_id, ())


class EntityStore:
    """Holds validated entities and hands out immutable snapshots."""

    def __init__(self):
        self._lock = threading.RLock()
        self._tables: Dict[str, Dict[Key, object]] = {kind: {} for kind in ENTITY_KINDS}
        self._lines_by_order: Dict[int, Dict[int, OrderLine]] = {}
        # staff_id -> manager_id
        self._manager_index: Dict[int, Optional[int]] = {}
        self._version = 0
        self._snapshot: Optional[Snapshot] = None

    @property
    def version(self) -> int:
        return self._version

    def count(self, kind: str) -> int:
        with self._lock:
            return len(self._tables[kind])

    def insert(self, entity) -> None:
        """Insert one entity after checking every invariant.

        Args:
            entity: One of the records from retail_analytics.entities

        Raises:
            InvariantViolation: A value constraint failed
            DuplicateKeyError: The primary key is already present
            IntegrityError: A referenced entity does not exist
        """
        if not isinstance(entity, ENTITY_TYPES):
            raise TypeError(f"Unsupported entity type: {type(entity).__name__}")

        kind = entity.kind
        key = entity.key

        with self._lock:
            errors = validate_entity(entity)
            if errors:
                raise InvariantViolation(
                    f"{kind} {key!r} violates {', '.join(sorted(errors))}",
                    details={'kind': kind, 'key': key, 'errors': errors}
                )

            if key in self._tables[kind]:
                raise DuplicateKeyError(
                    f"{kind} {key!r} already exists",
                    details={'kind': kind, 'key': key}
                )

            for ref_kind, attribute in REFERENCES[kind]:
                ref_key = getattr(entity, attribute)
                if ref_key is None:
                    continue
                if ref_key not in self._tables[ref_kind]:
                    raise IntegrityError(
                        f"{kind} {key!r} references missing {ref_kind} {ref_key!r}",
                        details={'kind': kind, 'key': key, 'field': attribute,
                                 'references': ref_kind, 'value': ref_key}
                    )

            if kind == 'staff':
                self._check_manager_chain(entity.staff_id, entity.manager_id)

            self._tables[kind][key] = entity
            if kind == 'order_line':
                self._lines_by_order.setdefault(entity.order_id, {})[entity.item_id] = entity
            elif kind == 'staff':
                self._manager_index[entity.staff_id] = entity.manager_id
            self._touch()

        logger.debug(f"Inserted {kind} {key!r}")

    def insert_many(self, entities: Iterable[object]) -> int:
        """Insert entities in order, stopping at the first failure.

        Returns:
            Number of entities inserted
        """
        inserted = 0
        for entity in entities:
            self.insert(entity)
            inserted += 1
        return inserted

    def delete_order(self, order_id: int) -> int:
        """Delete an order together with all of its lines.

        Args:
            order_id: Order to delete

        Returns:
            Number of order lines removed with the order

        Raises:
            IntegrityError: If the order does not exist
        """
        with self._lock:
            if order_id not in self._tables['order']:
                raise IntegrityError(
                    f"order {order_id!r} does not exist",
                    details={'kind': 'order', 'key': order_id}
                )

            lines = self._lines_by_order.pop(order_id, {})
            for item_id in lines:
                del self._tables['order_line'][(order_id, item_id)]
            del self._tables['order'][order_id]
            self._touch()

        logger.info(f"Deleted order {order_id} and {len(lines)} line(s)")
        return len(lines)

    def snapshot(self) -> Snapshot:
        """Immutable view of the current entities.

        The same Snapshot object is returned until the store changes.
        """
        with self._lock:
            if self._snapshot is None:
                self._snapshot = Snapshot.build(self._tables, self._version)
            return self._snapshot

    def _touch(self) -> None:
        self._version += 1
        self._snapshot = None

    def _check_manager_chain(self, staff_id: int, manager_id: Optional[int]) -> None:
        seen = set()
        current = manager_id
        while current is not None:
            if current == staff_id or current in seen:
                raise InvariantViolation(
                    f"staff {staff_id!r} manager chain forms a cycle",
                    details={'kind': 'staff', 'key': staff_id, 'manager_id': manager_id}
                )
            seen.add(current)
            current = self._manager_index.get(current)
