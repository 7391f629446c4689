"""Monthly billing period calculator.

Pure date arithmetic, no database access. Given the first day billed and a
due day, produces consecutive non-overlapping monthly periods:

    periodo_inicio[i] = start + i months
    periodo_fim[i]    = periodo_inicio[i + 1] - 1 day   (clipped to `end`)

Month offsets are always taken from the original start, so a contract starting
on the 31st bills Jan 31, Feb 28, Mar 31... instead of drifting to the 28th.
"""

from datetime import date, timedelta
from typing import Iterator, Optional

from gestao_imoveis.core.date_helpers import add_months, with_day
from gestao_imoveis.core.exceptions import ValidationError
from gestao_imoveis.domain.entities.billing import BillingPeriod

DEFAULT_MAX_PERIODS = 120


def validate_due_day(due_day: int) -> int:
    """Ensure due day is a day of month (1-31)."""
    if due_day is None or not 1 <= int(due_day) <= 31:
        raise ValidationError("Dia de vencimento deve estar entre 1 e 31.")
    return int(due_day)


def compute_due_date(periodo_inicio: date, due_day: int) -> date:
    """
    Due date for a period starting at periodo_inicio.

    The due day falls in the period's start month; when that is before the
    period start (e.g. period starts on the 15th, due day 10) it moves to the
    following month. Days past the month length clip to the last day.

    Examples:
        >>> compute_due_date(date(2025, 1, 1), 10)
        date(2025, 1, 10)
        >>> compute_due_date(date(2025, 1, 15), 10)
        date(2025, 2, 10)
        >>> compute_due_date(date(2025, 2, 1), 31)
        date(2025, 2, 28)
    """
    due_day = validate_due_day(due_day)
    due = with_day(periodo_inicio, due_day)
    if due < periodo_inicio:
        due = with_day(add_months(periodo_inicio.replace(day=1), 1), due_day)
    return due


def period_end_for(periodo_inicio: date) -> date:
    """Last day of the one-month period starting at periodo_inicio."""
    return add_months(periodo_inicio, 1) - timedelta(days=1)


def iter_billing_periods(
    start: date,
    due_day: int,
    end: Optional[date] = None,
    max_periods: int = DEFAULT_MAX_PERIODS,
) -> Iterator[BillingPeriod]:
    """
    Lazily yield monthly billing periods beginning at start.

    Args:
        start: First day of the first period
        due_day: Day of month installments fall due (1-31)
        end: Overall end bound; generation stops once a period would start on
            or after it, and the last period end is clipped to it
        max_periods: Hard cap on the number of periods yielded

    Yields:
        BillingPeriod for each month
    """
    due_day = validate_due_day(due_day)

    for offset in range(max_periods):
        periodo_inicio = add_months(start, offset)
        if end is not None and periodo_inicio >= end:
            return

        periodo_fim = add_months(start, offset + 1) - timedelta(days=1)
        if end is not None and periodo_fim > end:
            periodo_fim = end

        yield BillingPeriod(
            periodo_inicio=periodo_inicio,
            periodo_fim=periodo_fim,
            data_vencimento=compute_due_date(periodo_inicio, due_day),
        )
