"""Pydantic schemas for installments (parcelas)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from gestao_imoveis.domain.services.payment_status import resolve_status
from gestao_imoveis.infrastructure.database.models import Installment


class InstallmentResponse(BaseModel):
    """Schema for installment response."""

    id: str
    contrato_id: Optional[str] = None
    unidade_id: Optional[str] = None
    inquilino_id: Optional[str] = None
    numero_parcela: Optional[int] = Field(None, description="Sequência no contrato; nulo para avulsas")
    periodo_inicio: Optional[date] = None
    periodo_fim: Optional[date] = None
    data_vencimento: date
    valor_base: Decimal
    valor_iptu: Decimal
    valor_agua: Decimal
    valor_luz: Decimal
    valor_outros: Decimal
    desconto_pontualidade: Decimal
    valor_total: Decimal = Field(..., description="Base + IPTU + água + luz + outros − desconto")
    status_pagamento: str = Field(..., description="Status gravado")
    status_efetivo: str = Field(..., description="Status considerando vencimento (atrasado calculado)")
    data_pagamento: Optional[date] = None
    valor_pago: Optional[Decimal] = None
    descricao: Optional[str] = None
    observacoes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, installment: Installment, today: Optional[date] = None, **extra: Any):
        """Build the response, deriving status_efetivo."""
        data = {name: getattr(installment, name, None) for name in InstallmentResponse.model_fields}
        data["status_efetivo"] = resolve_status(
            installment.status_pagamento, installment.data_vencimento, today
        ).value
        data.update(extra)
        return cls(**data)


class InstallmentDetailResponse(InstallmentResponse):
    """Installment with tenant, unit and property names."""

    inquilino_nome: Optional[str] = None
    inquilino_cpf: Optional[str] = None
    unidade_identificador: Optional[str] = None
    tipo_unidade: Optional[str] = None
    imovel_id: Optional[str] = None
    imovel_nome: Optional[str] = None
    imovel_endereco: Optional[str] = None
    imovel_cidade: Optional[str] = None

    @classmethod
    def from_row(cls, row, today: Optional[date] = None):
        """Build from a (Installment, joined columns...) result row."""
        mapping = row._mapping
        joined = {key: mapping[key] for key in mapping.keys() if key != "Installment"}
        return cls.from_model(row[0], today, **joined)


class InstallmentUpdate(BaseModel):
    """Schema for patching an installment (payment recording, adjustments)."""

    data_vencimento: Optional[date] = None
    valor_base: Optional[Decimal] = Field(None, ge=0)
    valor_iptu: Optional[Decimal] = Field(None, ge=0)
    valor_agua: Optional[Decimal] = Field(None, ge=0)
    valor_luz: Optional[Decimal] = Field(None, ge=0)
    valor_outros: Optional[Decimal] = Field(None, ge=0)
    desconto_pontualidade: Optional[Decimal] = Field(None, ge=0)
    data_pagamento: Optional[date] = None
    valor_pago: Optional[Decimal] = Field(None, ge=0)
    status_pagamento: Optional[str] = Field(None, description="pendente, pago, atrasado ou cancelado")
    descricao: Optional[str] = Field(None, max_length=255)
    observacoes: Optional[str] = None


class StandaloneChargeCreate(BaseModel):
    """Schema for creating a standalone charge (parcela avulsa)."""

    unidade_id: Optional[str] = Field(None, description="Unidade cobrada (obrigatória)")
    inquilino_id: Optional[str] = Field(None, description="Padrão: inquilino do contrato ativo")
    descricao: Optional[str] = Field(None, max_length=255)
    data_vencimento: Optional[date] = Field(None, description="Vencimento (obrigatório)")
    valor_base: Optional[Decimal] = Field(None, ge=0)
    valor_iptu: Optional[Decimal] = Field(None, ge=0)
    valor_agua: Optional[Decimal] = Field(None, ge=0)
    valor_luz: Optional[Decimal] = Field(None, ge=0)
    valor_outros: Optional[Decimal] = Field(None, ge=0)
    desconto_pontualidade: Optional[Decimal] = Field(None, ge=0)
    observacoes: Optional[str] = None


class BulkStatusUpdate(BaseModel):
    """Schema for bulk status update."""

    ids: Optional[list[str]] = Field(None, description="IDs das parcelas")
    status: Optional[str] = Field(None, description="Novo status")


class BulkStatusResponse(BaseModel):
    """Schema for bulk status update response."""

    message: str
    atualizadas: int = Field(..., description="Quantidade de parcelas alteradas")
