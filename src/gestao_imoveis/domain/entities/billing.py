"""Billing domain entities."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentStatus(str, Enum):
    """Stored payment status of an installment."""

    PENDENTE = "pendente"
    PAGO = "pago"
    ATRASADO = "atrasado"
    CANCELADO = "cancelado"

    @property
    def label(self) -> str:
        """Human-readable label (used in audit summaries)."""
        return self.value.capitalize()


class UnitStatus(str, Enum):
    """Occupancy status of a unit."""

    DISPONIVEL = "disponivel"
    ALUGADO = "alugado"


class GenerationMode(str, Enum):
    """Installment generation modes."""

    NEXT = "next"
    MANUAL = "manual"
    ALL = "all"


class BillingPeriod(BaseModel):
    """One month of billing: the covered period and its due date."""

    model_config = ConfigDict(frozen=True)

    periodo_inicio: date = Field(..., description="First day covered")
    periodo_fim: date = Field(..., description="Last day covered (inclusive)")
    data_vencimento: date = Field(..., description="Due date")


PAYMENT_STATUS_VALUES = tuple(s.value for s in PaymentStatus)


class InstallmentFilter(BaseModel):
    """Composable installment search criteria. None means "no restriction"."""

    dt_inicio: Optional[date] = None
    dt_fim: Optional[date] = None
    status: Optional[str] = None
    imovel_id: Optional[str] = None
    unidade_id: Optional[str] = None
    inquilino_id: Optional[str] = None
    contrato_id: Optional[str] = None
