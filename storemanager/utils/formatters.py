"""
Formatting helpers for templates.
Includes number, money and date formats.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional


def num(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number with comma thousands separators.

    Without `decimals`, insignificant trailing zeros are dropped.

    Examples:
        num(1500) -> "1,500"
        num(1500.5) -> "1,500.5"
        num(185.00) -> "185"
        num(1234.5, 2) -> "1,234.50"
        num(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if not number.is_finite():
        return "-"

    if decimals is not None:
        return f"{number:,.{decimals}f}"

    if number == number.to_integral_value():
        return f"{number:,.0f}"
    formatted = f"{number:,f}"
    return formatted.rstrip('0').rstrip('.')


def money(value: Union[int, float, Decimal, str, None], currency: Optional[str] = None) -> str:
    """
    Format a monetary amount with exactly 2 decimals.

    Examples:
        money(1500) -> "1,500.00"
        money(90, 'EGP') -> "90.00 EGP"
        money('abc') -> "-"
    """
    formatted = num(value, 2)
    if formatted == "-" or not currency:
        return formatted
    return f"{formatted} {currency}"


def date_fmt(value: Union[date, datetime, None]) -> str:
    """
    Format a date as YYYY-MM-DD.

    Examples:
        date_fmt(date(2026, 1, 12)) -> "2026-01-12"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%Y-%m-%d")


def datetime_fmt(value: Union[datetime, None], with_time: bool = True) -> str:
    """
    Format a datetime as YYYY-MM-DD HH:MM.

    Examples:
        datetime_fmt(datetime(2026, 1, 12, 15, 30)) -> "2026-01-12 15:30"
        datetime_fmt(datetime(2026, 1, 12, 15, 30), with_time=False) -> "2026-01-12"
    """
    if value is None:
        return "-"

    if not isinstance(value, datetime):
        return "-"

    if with_time:
        return value.strftime("%Y-%m-%d %H:%M")
    return value.strftime("%Y-%m-%d")
