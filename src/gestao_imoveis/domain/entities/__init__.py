"""Domain entities and DTOs."""

from gestao_imoveis.domain.entities.billing import (
    PAYMENT_STATUS_VALUES,
    BillingPeriod,
    GenerationMode,
    InstallmentFilter,
    PaymentStatus,
    UnitStatus,
)

__all__ = [
    "BillingPeriod",
    "GenerationMode",
    "InstallmentFilter",
    "PaymentStatus",
    "UnitStatus",
    "PAYMENT_STATUS_VALUES",
]
