"""Database infrastructure."""

from gestao_imoveis.infrastructure.database.base import Base, get_session, transaction
from gestao_imoveis.infrastructure.database.models import (
    AuditLog,
    Contract,
    ContractRenewal,
    Installment,
    Property,
    Tenant,
    Unit,
)

__all__ = [
    "Base",
    "get_session",
    "transaction",
    "AuditLog",
    "Contract",
    "ContractRenewal",
    "Installment",
    "Property",
    "Tenant",
    "Unit",
]
