"""Ether / wei conversion without floating point"""
import re
from decimal import Decimal
from typing import Union

from amanah_matching.scoring import AmountLike, InvalidArgumentError, parse_amount

WEI_DECIMALS = 18
WEI_PER_ETHER = 10 ** WEI_DECIMALS

_DECIMAL_PATTERN = re.compile(r"^\+?(\d*)(?:\.(\d*))?$", re.ASCII)


def parse_ether(value: Union[str, int, Decimal]) -> int:
    """
    Convert a decimal ether amount to wei.

    Raises:
        InvalidArgumentError: If the value is negative, malformed or has more
            than 18 fractional digits
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise InvalidArgumentError(f"Ether amount must be a string, int or Decimal, got {type(value).__name__}")

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidArgumentError(f"Ether amount must be finite, got {value}")
        text = format(value, "f")
    else:
        text = str(value).strip()

    match = _DECIMAL_PATTERN.match(text)
    if not match or not (match.group(1) or match.group(2)):
        raise InvalidArgumentError(f"Invalid ether amount: {value!r}")

    whole, fraction = match.group(1) or "0", (match.group(2) or "").rstrip("0")
    if len(fraction) > WEI_DECIMALS:
        raise InvalidArgumentError(f"Ether amount has more than {WEI_DECIMALS} decimals: {value!r}")

    return int(whole) * WEI_PER_ETHER + int(fraction.ljust(WEI_DECIMALS, "0"))


def format_ether(wei: AmountLike) -> str:
    """Render wei as a decimal ether string, e.g. 1500000000000000000 -> '1.5'"""
    whole, fraction = divmod(parse_amount(wei, "wei"), WEI_PER_ETHER)
    fraction_text = str(fraction).rjust(WEI_DECIMALS, "0").rstrip("0") or "0"
    return f"{whole}.{fraction_text}"
