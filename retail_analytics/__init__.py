from .config import Config, config
from .store import EntityStore, Snapshot
from .exceptions import (
    RetailAnalyticsError, IntegrityError, InvariantViolation, DuplicateKeyError, ViewNotFoundError
)

__all__ = [
    'Config',
    'config',
    'EntityStore',
    'Snapshot',
    'RetailAnalyticsError',
    'IntegrityError',
    'InvariantViolation',
    'DuplicateKeyError',
    'ViewNotFoundError'
]
