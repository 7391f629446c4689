"""Contract routes: lifecycle and installment generation."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from gestao_imoveis.api.dependencies import (
    get_actor_context,
    get_contract_service,
    get_installment_service,
)
from gestao_imoveis.api.schemas import MessageResponse
from gestao_imoveis.api.v1.installments.schemas import InstallmentResponse
from gestao_imoveis.domain.services.audit_service import ActorContext
from gestao_imoveis.domain.services.contract_service import ContractService
from gestao_imoveis.domain.services.installment_service import InstallmentService

from .schemas import (
    ContractCloseResponse,
    ContractCreate,
    ContractDetailResponse,
    ContractListResponse,
    ContractRenew,
    ContractResponse,
    ContractUpdate,
    GenerateInstallments,
)

router = APIRouter(prefix="/contratos", tags=["Contratos"])


@router.get("", response_model=ContractListResponse)
def list_contracts(
    page: int = Query(1, ge=1, description="Página"),
    per_page: int = Query(10, ge=1, le=100, description="Itens por página"),
    encerrado: Optional[bool] = Query(None, description="Filtrar por encerrado/ativo"),
    unidade_id: Optional[str] = Query(None, description="Filtrar por unidade"),
    inquilino_id: Optional[str] = Query(None, description="Filtrar por inquilino"),
    service: ContractService = Depends(get_contract_service),
):
    """List contracts with pagination, newest first."""
    items, total = service.list_contracts(
        page=page,
        per_page=per_page,
        encerrado=encerrado,
        unidade_id=unidade_id,
        inquilino_id=inquilino_id,
    )
    return ContractListResponse(
        items=[ContractResponse.from_model(item) for item in items],
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total > 0 else 0,
    )


@router.post("", response_model=ContractDetailResponse, status_code=status.HTTP_201_CREATED)
def create_contract(
    payload: ContractCreate,
    service: ContractService = Depends(get_contract_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """
    Create a contract.

    Generates every installment of the contract period (up to the configured
    cap) and marks the unit as rented, in a single transaction.
    """
    contract = service.create(payload.model_dump(), actor=actor)
    return ContractDetailResponse.from_contract(contract)


@router.get("/{contract_id}", response_model=ContractDetailResponse)
def get_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
):
    """Get contract by ID, with installments and renewal history."""
    return ContractDetailResponse.from_contract(service.get(contract_id))


@router.put("/{contract_id}", response_model=ContractResponse)
def update_contract(
    contract_id: str,
    payload: ContractUpdate,
    service: ContractService = Depends(get_contract_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """
    Update contract.

    Omitted fields keep their value. Pending installments are updated with
    the new rent, breakdown and discount; paid or cancelled ones are not.
    """
    contract = service.update(contract_id, payload.model_dump(exclude_unset=True), actor=actor)
    return ContractResponse.from_model(contract)


@router.delete("/{contract_id}", response_model=MessageResponse)
def delete_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """Delete contract and all its installments."""
    service.delete(contract_id, actor=actor)
    return MessageResponse(message="Contrato removido com sucesso.")


@router.post("/{contract_id}/renovar", response_model=ContractResponse)
def renew_contract(
    contract_id: str,
    payload: ContractRenew,
    service: ContractService = Depends(get_contract_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """
    Renew contract for a new period and rent.

    Rejected with 409 when the new period overlaps the current one.
    """
    contract = service.renew(
        contract_id,
        data_fim_nova=payload.nova_data_fim,
        valor_novo=payload.novo_valor,
        data_inicio_nova=payload.nova_data_inicio,
        indice_reajuste=payload.indice_reajuste,
        observacoes=payload.observacoes,
        actor=actor,
    )
    return ContractResponse.from_model(contract)


@router.patch("/{contract_id}/encerrar", response_model=ContractCloseResponse)
def close_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """Close contract: frees the unit and cancels pending installments."""
    contract, cancelled = service.close(contract_id, actor=actor)
    return ContractCloseResponse(
        message="Contrato encerrado com sucesso.",
        parcelas_canceladas=cancelled,
        contrato=ContractResponse.from_model(contract),
    )


@router.get("/{contract_id}/parcelas", response_model=list[InstallmentResponse])
def list_contract_installments(
    contract_id: str,
    service: InstallmentService = Depends(get_installment_service),
):
    """List installments of a contract, by sequence number."""
    return [InstallmentResponse.from_model(p) for p in service.list_for_contract(contract_id)]


@router.post(
    "/{contract_id}/parcelas/gerar",
    response_model=list[InstallmentResponse],
    status_code=status.HTTP_201_CREATED,
)
def generate_installments(
    contract_id: str,
    payload: GenerateInstallments,
    service: ContractService = Depends(get_contract_service),
    actor: ActorContext = Depends(get_actor_context),
):
    """
    Generate installments.

    - **next**: one installment for the next period
    - **manual**: one installment with the given due date and amount
    - **all**: every remaining period until the contract end
    """
    generated = service.generate_installments(
        contract_id,
        mode=payload.mode,
        data_vencimento=payload.data_vencimento,
        valor=payload.valor,
        actor=actor,
    )
    return [InstallmentResponse.from_model(p) for p in generated]
