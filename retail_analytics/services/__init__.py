from .view_registry import ViewRegistry, ViewResult, RefreshSummary
from .reporting_service import ReportingService
from .persistence_service import PersistenceService
from .loader_service import LoaderService

__all__ = [
    'ViewRegistry',
    'ViewResult',
    'RefreshSummary',
    'ReportingService',
    'PersistenceService',
    'LoaderService'
]
