from decimal import ROUND_DOWN, Decimal

from wallfair.core.constants import ONE


def to_pretty_decimal(base_units, places: int = 4) -> str:
    """
    Formats an integer amount of base units as a token amount string,
    truncated to `places` decimals. 1234500000000000000 -> "1.2345"
    """
    value = Decimal(int(base_units)) / Decimal(ONE)
    quantum = Decimal(1).scaleb(-places)
    return str(value.quantize(quantum, rounding=ROUND_DOWN))
