"""API dependencies."""

from gestao_imoveis.api.dependencies.context import (
    get_actor_context,
    get_audit_service,
    get_client_ip,
    get_contract_service,
    get_installment_service,
)
from gestao_imoveis.api.dependencies.database import get_db

__all__ = [
    "get_db",
    "get_actor_context",
    "get_audit_service",
    "get_client_ip",
    "get_contract_service",
    "get_installment_service",
]
