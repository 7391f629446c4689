"""Derived payment status.

`atrasado` is never written just because a due date passed: it is computed
whenever an installment is read or filtered. A stored `pendente` row whose due
date is before today reads as `atrasado`, and reads as `pendente` again if its
due date is moved forward.
"""

from datetime import date
from typing import Optional, Union

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from gestao_imoveis.core.date_helpers import today as current_date
from gestao_imoveis.core.exceptions import ValidationError
from gestao_imoveis.domain.entities.billing import PaymentStatus

StatusLike = Union[PaymentStatus, str]


def parse_status(value: StatusLike) -> PaymentStatus:
    """Coerce a raw value into PaymentStatus, raising ValidationError when unknown."""
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "Status inválido.",
            details={"status": value, "allowed": [s.value for s in PaymentStatus]},
        )


def resolve_status(
    stored: StatusLike,
    data_vencimento: Optional[date],
    today: Optional[date] = None,
) -> PaymentStatus:
    """
    Effective status of an installment.

    Args:
        stored: Status persisted in the row
        data_vencimento: Due date
        today: Reference date (defaults to today in the billing timezone)

    Returns:
        ATRASADO if stored is PENDENTE and the due date has passed,
        otherwise the stored status

    Examples:
        >>> resolve_status("pendente", date(2025, 1, 10), today=date(2025, 1, 11))
        <PaymentStatus.ATRASADO: 'atrasado'>
        >>> resolve_status("pendente", date(2025, 1, 10), today=date(2025, 1, 10))
        <PaymentStatus.PENDENTE: 'pendente'>
    """
    status = parse_status(stored)
    if status is not PaymentStatus.PENDENTE or data_vencimento is None:
        return status
    ref = today or current_date()
    if data_vencimento < ref:
        return PaymentStatus.ATRASADO
    return status


def is_overdue(stored: StatusLike, data_vencimento: Optional[date], today: Optional[date] = None) -> bool:
    """Check if installment currently reads as overdue."""
    return resolve_status(stored, data_vencimento, today) is PaymentStatus.ATRASADO


def status_clause(
    status: StatusLike,
    status_column: ColumnElement,
    due_column: ColumnElement,
    today: Optional[date] = None,
) -> ColumnElement[bool]:
    """
    SQL predicate selecting rows whose *effective* status equals status.

    Mirrors resolve_status so filtering and display never disagree.
    """
    status = parse_status(status)
    ref = today or current_date()

    if status is PaymentStatus.ATRASADO:
        return or_(
            status_column == PaymentStatus.ATRASADO.value,
            and_(status_column == PaymentStatus.PENDENTE.value, due_column < ref),
        )
    if status is PaymentStatus.PENDENTE:
        return and_(status_column == PaymentStatus.PENDENTE.value, due_column >= ref)
    return status_column == status.value
