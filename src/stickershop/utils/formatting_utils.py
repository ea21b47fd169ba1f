from typing import Optional, Union
from decimal import Decimal, ROUND_HALF_UP

Number = Union[int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Exact decimal for a number; floats go through their shortest repr."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer, halves away from zero.

    All cent arithmetic goes through here so 89.25 -> 89 and 103.5 -> 104
    regardless of binary float artefacts.
    """
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class FormattingUtils:
    """
    Data formatting utilities for consistent display and API responses

    Features:
    - Money formatting with currency support
    - Text truncation for provider metadata fields
    - Compact file sizes for upload errors
    """

    # Currency symbols and formatting rules
    CURRENCY_FORMATS = {
        'USD': {'symbol': '$', 'decimal_places': 2, 'symbol_position': 'before'},
        'CAD': {'symbol': '$', 'decimal_places': 2, 'symbol_position': 'before'},
        'EUR': {'symbol': '€', 'decimal_places': 2, 'symbol_position': 'after'},
    }

    ELLIPSIS = '...'

    @classmethod
    def format_money(
        cls,
        amount_cents: int,
        currency: str = 'USD',
        include_symbol: bool = True,
        include_currency_code: bool = False
    ) -> str:
        """
        Format money amount for display

        Examples:
            format_money(1299, 'USD') -> "$12.99"
            format_money(1299, 'USD', include_currency_code=True) -> "$12.99 USD"
        """
        currency = currency.upper()
        currency_config = cls.CURRENCY_FORMATS.get(currency, cls.CURRENCY_FORMATS['USD'])

        decimal_places = currency_config['decimal_places']
        amount = Decimal(amount_cents) / (10 ** decimal_places)
        formatted_amount = f"{amount:,.{decimal_places}f}"

        result = formatted_amount
        if include_symbol:
            symbol = currency_config['symbol']
            if currency_config['symbol_position'] == 'before':
                result = f"{symbol}{formatted_amount}"
            else:
                result = f"{formatted_amount}{symbol}"

        if include_currency_code:
            result = f"{result} {currency}"

        return result

    @classmethod
    def truncate_text(cls, text: str, max_length: int, ellipsis: Optional[str] = None) -> str:
        """Character-based truncation that keeps the result within max_length"""
        if len(text) <= max_length:
            return text
        ellipsis = cls.ELLIPSIS if ellipsis is None else ellipsis
        return text[:max_length - len(ellipsis)] + ellipsis

    @classmethod
    def format_file_size(cls, size_bytes: int) -> str:
        """
        Compact file size for messages

        Examples:
            format_file_size(512) -> "512B"
            format_file_size(52428800) -> "50MB"
            format_file_size(1572864) -> "1.5MB"
        """
        size = float(size_bytes)
        for unit in ('B', 'KB', 'MB', 'GB'):
            if size < 1024.0:
                return f"{size:.1f}".rstrip('0').rstrip('.') + unit
            size /= 1024.0
        return f"{size:.1f}".rstrip('0').rstrip('.') + 'TB'


def format_price(cents: int) -> str:
    """Cents to a dollar string, e.g. 4450 -> "$44.50"."""
    return FormattingUtils.format_money(cents, include_symbol=True).replace(",", "")
