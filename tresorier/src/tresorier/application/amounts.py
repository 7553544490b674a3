"""
Amount parsing shared by money-moving use cases.
"""

from decimal import Decimal

from tresorier.domain.exceptions import InvalidAmountError, ValidationError
from tresorier.domain.value_objects import from_minor, parse_decimal, to_minor


def parse_positive_amount(value, field: str = "amount") -> Decimal:
    """
    Parse a client amount into a two-place Decimal.

    Raises:
        ValidationError: Not a number or more than two decimal places
        InvalidAmountError: Zero or negative
    """
    try:
        amount = parse_decimal(value)
        minor = to_minor(amount)
    except ValueError as e:
        raise ValidationError(field, str(e))

    if minor <= 0:
        raise InvalidAmountError(amount)

    return from_minor(minor)
