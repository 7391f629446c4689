"""Request context dependencies: acting user and audit sink."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from gestao_imoveis.api.dependencies.database import get_db
from gestao_imoveis.domain.services.audit_service import ActorContext, AuditService
from gestao_imoveis.domain.services.contract_service import ContractService
from gestao_imoveis.domain.services.installment_service import InstallmentService
from gestao_imoveis.infrastructure.database.base import SessionLocal

# Header set by the upstream authentication layer
USER_ID_HEADER = "X-User-Id"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the list is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host
    return "unknown"


def get_actor_context(request: Request) -> ActorContext:
    """Build the audit actor from the incoming request."""
    user_agent: Optional[str] = request.headers.get("User-Agent")
    return ActorContext(
        usuario_id=request.headers.get(USER_ID_HEADER),
        ip=get_client_ip(request),
        user_agent=user_agent[:500] if user_agent else None,
    )


def get_audit_service() -> AuditService:
    return AuditService(SessionLocal)


def get_contract_service(
    db: Session = Depends(get_db),
    audit: AuditService = Depends(get_audit_service),
) -> ContractService:
    return ContractService(db, audit)


def get_installment_service(
    db: Session = Depends(get_db),
    audit: AuditService = Depends(get_audit_service),
) -> InstallmentService:
    return InstallmentService(db, audit)
