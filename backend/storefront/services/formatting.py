"""Display formatting shared by emails and plain-text order summaries."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

Number = Union[Decimal, int, float]


def format_money(value: Optional[Number], symbol: str = "₹") -> str:
    """Format an amount with thousands separators, dropping ``.00``."""
    amount = Decimal(str(value or 0))
    if amount == amount.to_integral_value():
        return f"{symbol}{amount:,.0f}"
    return f"{symbol}{amount:,.2f}"


def format_date(value: Optional[Union[datetime, str]]) -> str:
    """Format a datetime (or ISO string) as e.g. ``October 19, 2026``."""
    if value is None:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value.strftime("%B %d, %Y").replace(" 0", " ")
