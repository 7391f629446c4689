"""Date helpers for billing periods."""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from gestao_imoveis.core.config import get_settings


def today(tz_name: Optional[str] = None) -> date:
    """
    Current calendar date in the configured billing timezone.

    Overdue checks compare due dates against this value, so a server running
    in UTC does not flag installments as overdue hours before the local day
    ends.

    Args:
        tz_name: IANA timezone name (defaults to Settings.timezone)

    Returns:
        Today's date in that timezone
    """
    tz = ZoneInfo(tz_name or get_settings().timezone)
    return datetime.now(tz).date()


def add_months(ref_date: date, months: int) -> date:
    """
    Shift a date by whole months, clipping to the last day of short months.

    Examples:
        >>> add_months(date(2025, 1, 31), 1)
        date(2025, 2, 28)
        >>> add_months(date(2025, 1, 15), 12)
        date(2026, 1, 15)
    """
    return ref_date + relativedelta(months=months)


def with_day(ref_date: date, day: int) -> date:
    """
    Same month as ref_date, given day, clipped to the month length.

    Examples:
        >>> with_day(date(2025, 2, 1), 31)
        date(2025, 2, 28)
    """
    return ref_date + relativedelta(day=day)


def format_reference_label(ref_date: date) -> str:
    """
    Format the billing reference month as MM/YYYY.

    Examples:
        >>> format_reference_label(date(2025, 3, 1))
        '03/2025'
    """
    return ref_date.strftime("%m/%Y")
