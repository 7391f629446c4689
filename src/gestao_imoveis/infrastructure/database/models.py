"""SQLAlchemy database models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestao_imoveis.domain.entities.billing import PaymentStatus, UnitStatus
from gestao_imoveis.infrastructure.database.base import Base

ZERO = Decimal("0.00")


def _uuid_pk() -> Mapped[str]:
    return mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )


# =============================================================================
# Collaborator tables (properties, units, tenants)
# =============================================================================


class Property(Base):
    """Property (imóvel) that groups rentable units."""

    __tablename__ = "propriedades"

    id: Mapped[str] = _uuid_pk()
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    endereco: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    numero: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    cidade: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)

    unidades: Mapped[list["Unit"]] = relationship("Unit", back_populates="propriedade")

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, nome={self.nome})>"


class Unit(Base):
    """Rentable unit inside a property.

    `status` is flipped by the contract lifecycle only:
    - alugado: set when a contract is created
    - disponivel: set when a contract is closed
    """

    __tablename__ = "unidades"

    id: Mapped[str] = _uuid_pk()
    propriedade_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("propriedades.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identificador: Mapped[str] = mapped_column(String(50), nullable=False)
    tipo_unidade: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UnitStatus.DISPONIVEL.value
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    propriedade: Mapped["Property"] = relationship("Property", back_populates="unidades")

    __table_args__ = (
        CheckConstraint("status IN ('disponivel', 'alugado')", name="ck_unidade_status"),
    )

    def __repr__(self) -> str:
        return f"<Unit(id={self.id}, identificador={self.identificador}, status={self.status})>"


class Tenant(Base):
    """Tenant (inquilino)."""

    __tablename__ = "inquilinos"

    id: Mapped[str] = _uuid_pk()
    nome_completo: Mapped[str] = mapped_column(String(255), nullable=False)
    cpf: Mapped[Optional[str]] = mapped_column(String(14), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, nome={self.nome_completo})>"


# =============================================================================
# Billing tables
# =============================================================================


class Contract(Base):
    """Lease contract between a tenant and a unit.

    `data_inicio`/`data_fim` hold the *current* billing period; renewals
    overwrite them and keep the previous values in `contrato_renovacoes`.
    Once `status_encerrado` is set no installment of the contract may remain
    `pendente`.
    """

    __tablename__ = "contratos"

    id: Mapped[str] = _uuid_pk()
    inquilino_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("inquilinos.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    unidade_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("unidades.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Period and rent
    data_inicio: Mapped[date] = mapped_column(nullable=False)
    data_fim: Mapped[date] = mapped_column(nullable=False)
    valor_inicial: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    dia_vencimento: Mapped[int] = mapped_column(nullable=False)
    qtd_ocupantes: Mapped[int] = mapped_column(nullable=False, default=1)

    # Monthly fixed add-ons
    valor_iptu: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_agua: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_luz: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_outros: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    desconto_pontualidade: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=ZERO
    )

    observacoes_contrato: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status_encerrado: Mapped[bool] = mapped_column(nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    # Relationships
    inquilino: Mapped["Tenant"] = relationship("Tenant", lazy="joined")
    unidade: Mapped["Unit"] = relationship("Unit", lazy="joined")
    parcelas: Mapped[list["Installment"]] = relationship(
        "Installment",
        back_populates="contrato",
        cascade="all, delete-orphan",
        order_by="Installment.numero_parcela",
    )
    renovacoes: Mapped[list["ContractRenewal"]] = relationship(
        "ContractRenewal",
        back_populates="contrato",
        cascade="all, delete-orphan",
        order_by=lambda: ContractRenewal.data_renovacao.desc(),
    )

    __table_args__ = (
        CheckConstraint("dia_vencimento BETWEEN 1 AND 31", name="ck_contrato_dia_vencimento"),
        Index("idx_contrato_unidade_encerrado", "unidade_id", "status_encerrado"),
        Index("idx_contrato_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Contract(id={self.id}, unidade={self.unidade_id}, "
            f"periodo={self.data_inicio}..{self.data_fim}, encerrado={self.status_encerrado})>"
        )

    @property
    def is_closed(self) -> bool:
        return bool(self.status_encerrado)


class Installment(Base):
    """Installment (parcela): one payable obligation.

    Generated installments carry a per-contract `numero_parcela`; standalone
    charges (avulsos) leave it NULL and may have no contract at all.
    """

    __tablename__ = "contrato_parcelas"

    id: Mapped[str] = _uuid_pk()
    contrato_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("contratos.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    unidade_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("unidades.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    inquilino_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("inquilinos.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    numero_parcela: Mapped[Optional[int]] = mapped_column(nullable=True)

    # Billed period
    periodo_inicio: Mapped[Optional[date]] = mapped_column(nullable=True)
    periodo_fim: Mapped[Optional[date]] = mapped_column(nullable=True)
    data_vencimento: Mapped[date] = mapped_column(nullable=False, index=True)

    # Components
    valor_base: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_iptu: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_agua: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_luz: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    valor_outros: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    desconto_pontualidade: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=ZERO
    )

    # Payment
    status_pagamento: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDENTE.value, index=True
    )
    data_pagamento: Mapped[Optional[date]] = mapped_column(nullable=True)
    valor_pago: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    descricao: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    # Relationships
    contrato: Mapped[Optional["Contract"]] = relationship("Contract", back_populates="parcelas")
    unidade: Mapped[Optional["Unit"]] = relationship("Unit")
    inquilino: Mapped[Optional["Tenant"]] = relationship("Tenant")

    __table_args__ = (
        UniqueConstraint("contrato_id", "numero_parcela", name="uq_parcela_contrato_numero"),
        CheckConstraint(
            "status_pagamento IN ('pendente', 'pago', 'atrasado', 'cancelado')",
            name="ck_parcela_status_pagamento",
        ),
        Index("idx_parcela_status_vencimento", "status_pagamento", "data_vencimento"),
    )

    def __repr__(self) -> str:
        return (
            f"<Installment(id={self.id}, contrato={self.contrato_id}, numero={self.numero_parcela}, "
            f"vencimento={self.data_vencimento}, status={self.status_pagamento})>"
        )

    @property
    def valor_total(self) -> Decimal:
        """Base + IPTU + água + luz + outros − desconto de pontualidade."""
        return (
            (self.valor_base or ZERO)
            + (self.valor_iptu or ZERO)
            + (self.valor_agua or ZERO)
            + (self.valor_luz or ZERO)
            + (self.valor_outros or ZERO)
            - (self.desconto_pontualidade or ZERO)
        )

    @property
    def is_standalone(self) -> bool:
        return self.numero_parcela is None


class ContractRenewal(Base):
    """Renewal history (append-only).

    One row per renewal: previous and new rent, the new period bounds and the
    adjustment index label. Never updated.
    """

    __tablename__ = "contrato_renovacoes"

    id: Mapped[str] = _uuid_pk()
    contrato_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("contratos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data_renovacao: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    valor_anterior: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    valor_novo: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    data_inicio_anterior: Mapped[date] = mapped_column(nullable=False)
    data_fim_anterior: Mapped[date] = mapped_column(nullable=False)
    data_inicio_novo: Mapped[date] = mapped_column(nullable=False)
    data_fim_novo: Mapped[date] = mapped_column(nullable=False)
    indice_reajuste: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)

    contrato: Mapped["Contract"] = relationship("Contract", back_populates="renovacoes")

    def __repr__(self) -> str:
        return (
            f"<ContractRenewal(id={self.id}, contrato={self.contrato_id}, "
            f"{self.valor_anterior}->{self.valor_novo}, fim={self.data_fim_novo})>"
        )


# =============================================================================
# Audit
# =============================================================================


class AuditLog(Base):
    """Audit trail written by the audit sink. Rows are never updated."""

    __tablename__ = "auditoria"

    id: Mapped[str] = _uuid_pk()
    usuario_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    acao: Mapped[str] = mapped_column(String(50), nullable=False)  # CRIAR, ATUALIZAR, EXCLUIR, ...
    entidade: Mapped[str] = mapped_column(String(100), nullable=False)  # Contrato, Parcela
    entidade_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    dados_antigos: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    dados_novos: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    detalhes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ip: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_auditoria_entidade", "entidade", "entidade_id"),
        Index("idx_auditoria_created_at", "created_at"),
    )
