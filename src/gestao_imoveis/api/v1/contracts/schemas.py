"""Pydantic schemas for contracts (contratos)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from gestao_imoveis.api.v1.installments.schemas import InstallmentResponse
from gestao_imoveis.domain.entities.billing import GenerationMode
from gestao_imoveis.infrastructure.database.models import Contract


class ContractBase(BaseModel):
    """Editable contract fields."""

    data_inicio: Optional[date] = Field(None, description="Início do período vigente")
    data_fim: Optional[date] = Field(None, description="Fim do período vigente")
    valor_inicial: Optional[Decimal] = Field(None, gt=0, description="Aluguel mensal")
    dia_vencimento: Optional[int] = Field(None, description="Dia de vencimento (1-31)")
    qtd_ocupantes: Optional[int] = Field(None, ge=1)
    valor_iptu: Optional[Decimal] = Field(None, ge=0)
    valor_agua: Optional[Decimal] = Field(None, ge=0)
    valor_luz: Optional[Decimal] = Field(None, ge=0)
    valor_outros: Optional[Decimal] = Field(None, ge=0)
    desconto_pontualidade: Optional[Decimal] = Field(None, ge=0)
    observacoes_contrato: Optional[str] = None


class ContractCreate(ContractBase):
    """Schema for creating a contract.

    Required fields are checked by the service so a missing field is a 400
    with a single message, not a schema error per field.
    """

    inquilino_id: Optional[str] = Field(None, description="Inquilino (obrigatório)")
    unidade_id: Optional[str] = Field(None, description="Unidade (obrigatória)")


class ContractUpdate(ContractBase):
    """Schema for updating a contract. Omitted fields keep their value."""

    pass


class ContractRenew(BaseModel):
    """Schema for renewing a contract."""

    nova_data_fim: Optional[date] = Field(None, description="Fim do novo período (obrigatório)")
    novo_valor: Optional[Decimal] = Field(None, gt=0, description="Novo aluguel (obrigatório)")
    nova_data_inicio: Optional[date] = Field(
        None, description="Início do novo período (padrão: dia seguinte ao fim atual)"
    )
    indice_reajuste: Optional[str] = Field(None, max_length=50, description="IGP-M, IPCA, ...")
    observacoes: Optional[str] = None


class GenerateInstallments(BaseModel):
    """Schema for generating installments."""

    mode: str = Field(GenerationMode.NEXT.value, description="next, manual ou all")
    data_vencimento: Optional[date] = Field(None, description="Obrigatório no modo manual")
    valor: Optional[Decimal] = Field(None, gt=0, description="Valor base no modo manual")


class RenewalResponse(BaseModel):
    """Schema for renewal history entry."""

    id: str
    data_renovacao: datetime
    valor_anterior: Decimal
    valor_novo: Decimal
    data_inicio_anterior: date
    data_fim_anterior: date
    data_inicio_novo: date
    data_fim_novo: date
    indice_reajuste: Optional[str] = None
    observacoes: Optional[str] = None

    class Config:
        from_attributes = True


class ContractResponse(BaseModel):
    """Schema for contract response."""

    id: str
    inquilino_id: str
    unidade_id: str
    inquilino_nome: Optional[str] = None
    unidade_identificador: Optional[str] = None
    data_inicio: date
    data_fim: date
    valor_inicial: Decimal
    dia_vencimento: int
    qtd_ocupantes: int
    valor_iptu: Decimal
    valor_agua: Decimal
    valor_luz: Decimal
    valor_outros: Decimal
    desconto_pontualidade: Decimal
    observacoes_contrato: Optional[str] = None
    status_encerrado: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, contract: Contract, **extra):
        data = {
            name: getattr(contract, name, None)
            for name in ContractResponse.model_fields
            if name not in ("inquilino_nome", "unidade_identificador")
        }
        data["inquilino_nome"] = contract.inquilino.nome_completo if contract.inquilino else None
        data["unidade_identificador"] = contract.unidade.identificador if contract.unidade else None
        data.update(extra)
        return cls(**data)


class ContractDetailResponse(ContractResponse):
    """Contract with installments and renewal history."""

    parcelas: list[InstallmentResponse] = []
    renovacoes: list[RenewalResponse] = []

    @classmethod
    def from_contract(cls, contract: Contract, today: Optional[date] = None):
        return cls.from_model(
            contract,
            parcelas=[InstallmentResponse.from_model(p, today) for p in contract.parcelas],
            renovacoes=[RenewalResponse.model_validate(r) for r in contract.renovacoes],
        )


class ContractListResponse(BaseModel):
    """Schema for paginated list response."""

    items: list[ContractResponse]
    total: int
    page: int
    per_page: int
    pages: int


class ContractCloseResponse(BaseModel):
    """Schema for close response."""

    message: str
    parcelas_canceladas: int
    contrato: ContractResponse
