from .date_utils import days_between, convert_to_date
from .math_utils import safe_ratio, mean, quantize, percentage
from .validation import validate_entity

__all__ = [
    'days_between',
    'convert_to_date',
    'safe_ratio',
    'mean',
    'quantize',
    'percentage',
    'validate_entity'
]
