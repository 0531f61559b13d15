"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£", "CHF": "CHF"}


@dataclass(frozen=True)
class Money:
    """Amount in minor units (cents) with its ISO currency code."""

    cents: int
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if self.cents < 0:
            raise ValueError("Money amount cannot be negative")

    def format(self, decimals: int = 2) -> str:
        """French formatting: ``1 500,00 €``."""
        quantum = Decimal(1).scaleb(-decimals)
        amount = (Decimal(self.cents) / 100).quantize(quantum, rounding=ROUND_HALF_UP)
        whole, _, fraction = f"{amount:.{decimals}f}".partition(".")
        grouped = f"{int(whole):,}".replace(",", " ")
        number = f"{grouped},{fraction}" if fraction else grouped
        symbol = _CURRENCY_SYMBOLS.get(self.currency.upper(), self.currency.upper())
        return f"{number} {symbol}"

    def __str__(self) -> str:
        return self.format()
