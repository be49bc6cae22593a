"""Quadratic funding contribution scoring"""
import math
from typing import Iterable, List, Optional, Union

AmountLike = Union[int, str]


class InvalidArgumentError(ValueError):
    """Raised for negative, malformed or non-integer amounts"""
    pass


def parse_amount(value: AmountLike, name: str = "amount") -> int:
    """
    Convert an amount in the smallest currency unit to an int.

    Accepts ints and decimal digit strings. Floats are refused since they
    cannot carry 18-decimal wei values without losing precision.

    Raises:
        InvalidArgumentError: If the value is negative, malformed or not an integer
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be an integer, got bool")

    if isinstance(value, int):
        amount = value
    elif isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text.startswith("+") else text
        if not digits.isdigit() or not digits.isascii():
            raise InvalidArgumentError(f"{name} is not a valid integer amount: {value!r}")
        amount = int(digits)
    else:
        raise InvalidArgumentError(
            f"{name} must be an int or a decimal string, got {type(value).__name__}"
        )

    if amount < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {amount}")
    return amount


def parse_amounts(values: Optional[Iterable[AmountLike]], name: str = "donation") -> List[int]:
    """Parse a sequence of amounts, failing on the first invalid entry"""
    if not values:
        return []
    return [parse_amount(value, f"{name}[{index}]") for index, value in enumerate(values)]


class ContributionScorer:
    """Calculates quadratic funding scores for a campaign's donations"""

    def calculate_score(self, donations: Optional[Iterable[AmountLike]]) -> int:
        """
        Square of the sum of integer square roots of the donations.

        Each square root is floored, so a single donation d scores isqrt(d)**2,
        which can be slightly below d.
        """
        sum_sqrt = sum(math.isqrt(amount) for amount in parse_amounts(donations))
        return sum_sqrt * sum_sqrt
