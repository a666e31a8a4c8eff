from .revenue import (
    line_gross_sales, line_net_sales, line_discount_amount, SalesTotals
)
from .fulfillment import classify_fulfillment, fulfillment_days
from .derivations import EngineSettings, ViewDefinition, VIEW_DEFINITIONS

__all__ = [
    'line_gross_sales',
    'line_net_sales',
    'line_discount_amount',
    'SalesTotals',
    'classify_fulfillment',
    'fulfillment_days',
    'EngineSettings',
    'ViewDefinition',
    'VIEW_DEFINITIONS'
]
