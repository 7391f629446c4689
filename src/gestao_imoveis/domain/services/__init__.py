"""Domain services."""

from gestao_imoveis.domain.services.audit_service import ActorContext, AuditService
from gestao_imoveis.domain.services.contract_service import ContractService
from gestao_imoveis.domain.services.installment_generator import InstallmentGenerator
from gestao_imoveis.domain.services.installment_service import InstallmentService
from gestao_imoveis.domain.services.payment_status import resolve_status, status_clause

__all__ = [
    "ActorContext",
    "AuditService",
    "ContractService",
    "InstallmentGenerator",
    "InstallmentService",
    "resolve_status",
    "status_clause",
]
