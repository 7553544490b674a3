"""
Domain value objects.
"""

from tresorier.domain.value_objects.money import (
    CURRENCY,
    Money,
    from_minor,
    parse_decimal,
    quantize,
    to_minor,
)
from tresorier.domain.value_objects.timestamps import utc_now

__all__ = [
    "CURRENCY",
    "Money",
    "from_minor",
    "parse_decimal",
    "quantize",
    "to_minor",
    "utc_now",
]
