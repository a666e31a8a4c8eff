import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from retail_analytics.config import config as default_config
from retail_analytics.core.derivations import EngineSettings, ViewDefinition, VIEW_DEFINITIONS
from retail_analytics.exceptions import IntegrityError, ViewNotFoundError
from retail_analytics.logging_setup import refresh_end_log, refresh_start_log
from retail_analytics.store import EntityStore, Snapshot

logger = logging.getLogger(__name__)


def json_default(value):
    """JSON encoder fallback: Decimal as string, dates in ISO format."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass(frozen=True)
class ViewResult:
    """Rows of one derived view, computed from a single snapshot."""

    name: str
    columns: Tuple[str, ...]
    rows: Tuple[Mapping[str, object], ...]
    snapshot_version: int
    computed_at: datetime = field(default_factory=datetime.now, compare=False)

    def __len__(self):
        return len(self.rows)

    def to_records(self) -> List[Dict[str, object]]:
        """Rows as plain dictionaries in column order."""
        return [{column: row.get(column) for column in self.columns} for row in self.rows]

    def to_json(self) -> str:
        """Serialize the view; identical rows always give identical text."""
        return json.dumps(
            {'view': self.name, 'columns': list(self.columns), 'rows': self.to_records()},
            default=json_default
        )


@dataclass
class RefreshSummary:
    """Outcome of a refresh_all run."""

    snapshot_version: int
    refreshed: Dict[str, ViewResult] = field(default_factory=dict)
    failed: Dict[str, IntegrityError] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


class ViewRegistry:
    """Named KPI views over an entity store.

    ``query`` computes a view on demand without touching the cache;
    ``refresh`` computes and caches it. Both go through the same derivation.
    """

    def __init__(
        self,
        store: EntityStore,
        settings=None,
        definitions: Sequence[ViewDefinition] = VIEW_DEFINITIONS
    ):
        """Initialize the registry.

        Args:
            store: Entity store to read snapshots from
            settings: Config instance; the module default is used when omitted
            definitions: Views to register
        """
        self.store = store
        self.settings = settings or default_config
        self.engine_settings = EngineSettings.from_config(self.settings)
        self._definitions: Dict[str, ViewDefinition] = {
            definition.name: definition for definition in definitions
        }
        self._cache: Dict[str, ViewResult] = {}
        self._lock = threading.Lock()

    def view_names(self) -> List[str]:
        return list(self._definitions)

    def definition(self, view_name: str) -> ViewDefinition:
        try:
            return self._definitions[view_name]
        except KeyError:
            raise ViewNotFoundError(
                f"Unknown view: {view_name}",
                details={'view': view_name, 'available': self.view_names()}
            )

    def compute(self, view_name: str, snapshot: Snapshot) -> ViewResult:
        """Run one derivation against a given snapshot.

        Args:
            view_name: Registered view name
            snapshot: Snapshot to derive from

        Returns:
            ViewResult

        Raises:
            ViewNotFoundError: If the view is not registered
            IntegrityError: If the snapshot references a missing entity
        """
        definition = self.definition(view_name)
        rows = definition.derive(snapshot, self.engine_settings)
        return ViewResult(
            name=definition.name,
            columns=definition.columns,
            rows=tuple(MappingProxyType(dict(row)) for row in rows),
            snapshot_version=snapshot.version
        )

    def query(self, view_name: str) -> ViewResult:
        """Compute a view from the latest snapshot without caching it."""
        return self.compute(view_name, self.store.snapshot())

    def refresh(self, view_name: str) -> ViewResult:
        """Recompute a view from the latest snapshot and cache the result."""
        snapshot = self.store.snapshot()
        result = self.compute(view_name, snapshot)
        with self._lock:
            self._cache[view_name] = result
        logger.info(f"Refreshed view {view_name}: {len(result)} row(s) at snapshot {snapshot.version}")
        return result

    def refresh_all(self) -> RefreshSummary:
        """Recompute every registered view against one snapshot.

        A view that fails with IntegrityError is logged and reported in the
        summary; the remaining views still refresh.

        Returns:
            RefreshSummary
        """
        snapshot = self.store.snapshot()
        names = self.view_names()
        log_info = refresh_start_log(names, snapshot.version)
        summary = RefreshSummary(snapshot_version=snapshot.version)

        engine_config = self.settings.engine_config
        max_workers = engine_config['max_workers'] or 1
        if engine_config['parallel_refresh'] and max_workers > 1 and len(names) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = {name: executor.submit(self.compute, name, snapshot) for name in names}
                for name in names:
                    self._collect(summary, name, futures[name].result)
        else:
            for name in names:
                self._collect(summary, name, lambda name=name: self.compute(name, snapshot))

        with self._lock:
            self._cache.update(summary.refreshed)

        refresh_end_log(log_info, summary.failed)
        return summary

    def _collect(self, summary: RefreshSummary, name: str, produce) -> None:
        try:
            summary.refreshed[name] = produce()
        except IntegrityError as e:
            logger.error(f"View {name} failed: {str(e)}")
            summary.failed[name] = e

    def get(self, view_name: str) -> ViewResult:
        """Cached result for a view, refreshing it if never computed."""
        self.definition(view_name)
        with self._lock:
            cached = self._cache.get(view_name)
        if cached is not None:
            return cached
        return self.refresh(view_name)

    def cached(self, view_name: str) -> Optional[ViewResult]:
        with self._lock:
            return self._cache.get(view_name)

    def invalidate(self, view_name: Optional[str] = None) -> None:
        """Drop one cached view, or all of them."""
        with self._lock:
            if view_name is None:
                self._cache.clear()
            else:
                self._cache.pop(view_name, None)
