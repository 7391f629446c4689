"""Installment routes: search, payment recording, standalone charges."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from gestao_imoveis.api.dependencies import get_actor_context, get_installment_service
from gestao_imoveis.api.schemas import MessageResponse
from gestao_imoveis.domain.entities.billing import InstallmentFilter
from gestao_imoveis.domain.services.audit_service import ActorContext
from gestao_imoveis.domain.services.installment_service import InstallmentService

from .schemas import (
    BulkStatusResponse,
    BulkStatusUpdate,
    InstallmentDetailResponse,
    InstallmentResponse,
    InstallmentUpdate,
    StandaloneChargeCreate,
)

router = APIRouter(prefix="/contratos/parcelas", tags=["Parcelas"])


@router.get("/filtro", response_model=list[InstallmentDetailResponse])
def filter_installments(
    dt_inicio: Optional[date] = Query(None, description="Vencimento a partir de"),
    dt_fim: Optional[date] = Query(None, description="Vencimento até"),
    status_filter: Optional[str] = Query(
        None, alias="status", description="pendente, pago, atrasado, cancelado ou todos"
    ),
    imovel_id: Optional[str] = Query(None, description="Filtrar por imóvel"),
    unidade_id: Optional[str] = Query(None, description="Filtrar por unidade"),
    inquilino_id: Optional[str] = Query(None, description="Filtrar por inquilino"),
    service: InstallmentService = Depends(get_installment_service),
):
    """
    Search installments across contracts (boletos page).

    `status=atrasado` also returns pending installments whose due date has
    passed. Results are ordered by due date, then tenant name.
    """
    criteria = InstallmentFilter(
        dt_inicio=dt_inicio,
        dt_fim=dt_fim,
        status=status_filter,
        imovel_id=imovel_id,
        unidade_id=unidade_id,
        inquilino_id=inquilino_id,
    )
    rows = service.filter(criteria)
    return [InstallmentDetailResponse.from_row(row) for row in rows]


@router.post("/bulk-update", response_model=BulkStatusResponse)
def bulk_update_status(
    payload: BulkStatusUpdate,
    service: InstallmentService = Depends(get_installment_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """Set the status of many installments at once."""
    ids = payload.ids or []
    updated = service.bulk_set_status(ids, payload.status, actor=actor)
    return BulkStatusResponse(message="Parcelas atualizadas com sucesso.", atualizadas=updated)


@router.post("/avulso", response_model=InstallmentResponse, status_code=status.HTTP_201_CREATED)
def create_standalone_charge(
    payload: StandaloneChargeCreate,
    service: InstallmentService = Depends(get_installment_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """Create a standalone charge linked to the unit's open contract, if any."""
    charge = service.create_charge(payload.model_dump(), actor=actor)
    return InstallmentResponse.from_model(charge)


@router.get("/{installment_id}", response_model=InstallmentDetailResponse)
def get_installment(
    installment_id: str,
    service: InstallmentService = Depends(get_installment_service),
):
    """Get installment by ID, with tenant, unit and property details."""
    return InstallmentDetailResponse.from_row(service.get(installment_id))


@router.patch("/{installment_id}", response_model=InstallmentResponse)
def update_installment(
    installment_id: str,
    payload: InstallmentUpdate,
    service: InstallmentService = Depends(get_installment_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """
    Update installment (payment, discount, amounts).

    Only provided fields are changed. Marking as `pago` without a payment
    date stamps today.
    """
    installment = service.update(installment_id, payload.model_dump(exclude_unset=True), actor=actor)
    return InstallmentResponse.from_model(installment)


@router.delete("/{installment_id}", response_model=MessageResponse)
def delete_installment(
    installment_id: str,
    service: InstallmentService = Depends(get_installment_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """Delete installment."""
    service.delete(installment_id, actor=actor)
    return MessageResponse(message="Parcela removida com sucesso.")
