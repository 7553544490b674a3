"""
Money value object - exact INR amounts backed by integer paise.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CURRENCY = "INR"
MINOR_UNITS_PER_MAJOR = 100
CENT = Decimal("0.01")


@dataclass(frozen=True, order=True)
class Money:
    """
    Value object representing an amount of money in minor units.

    Business rules:
    - Stored as integer paise, so equality is exact (3.40 == 3.4)
    - At most two decimal places accepted from callers
    - Sign is preserved (ledger debits are negative)
    """

    minor: int
    currency: str = CURRENCY

    def __post_init__(self):
        """Validate money on creation."""
        if not isinstance(self.minor, int) or isinstance(self.minor, bool):
            raise ValueError("Minor units must be an integer")

        if self.currency != CURRENCY:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def of(cls, amount: Decimal | str | int) -> "Money":
        """
        Build Money from a major-unit amount.

        Raises:
            ValueError: If amount is not a finite number or has more than
                two decimal places
        """
        return cls(to_minor(amount))

    @classmethod
    def zero(cls) -> "Money":
        """Return zero rupees."""
        return cls(0)

    @property
    def amount(self) -> Decimal:
        """Amount in major units with two decimal places."""
        return from_minor(self.minor)

    def __add__(self, other: "Money") -> "Money":
        return Money(self.minor + other.minor)

    def __sub__(self, other: "Money") -> "Money":
        return Money(self.minor - other.minor)

    def __neg__(self) -> "Money":
        return Money(-self.minor)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


def parse_decimal(value: Decimal | str | int | float) -> Decimal:
    """
    Convert raw input to Decimal.

    Floats go through str() so 3.4 becomes Decimal("3.4"), not its binary
    expansion.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(value)
        except (InvalidOperation, TypeError) as e:
            raise ValueError(f"Not a valid amount: {value!r}") from e

    if not result.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return result


def to_minor(value: Decimal | str | int | float) -> int:
    """Convert a major-unit amount to integer paise."""
    amount = parse_decimal(value)
    if amount != amount.quantize(CENT):
        raise ValueError(f"Amount {amount} has more than two decimal places")
    return int((amount * MINOR_UNITS_PER_MAJOR).to_integral_value())


def from_minor(minor: int) -> Decimal:
    """Convert integer paise to a two-place Decimal."""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(CENT)


def quantize(amount: Decimal) -> Decimal:
    """Round to two decimal places (half-up)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
