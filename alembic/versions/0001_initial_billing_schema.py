"""initial_billing_schema

Create lease billing tables:
- propriedades
- unidades
- inquilinos
- contratos
- contrato_parcelas
- contrato_renovacoes
- auditoria

Revision ID: 0001_initial_billing_schema
Revises:
Create Date: 2025-01-06

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = "0001_initial_billing_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(12, 2), nullable=True)
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0")


def upgrade() -> None:
    """Create billing tables."""

    # 1. propriedades
    op.create_table(
        "propriedades",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column("nome", sa.String(255), nullable=False),
        sa.Column("endereco", sa.String(255), nullable=True),
        sa.Column("numero", sa.String(20), nullable=True),
        sa.Column("cidade", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # 2. unidades
    op.create_table(
        "unidades",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "propriedade_id",
            UUID(as_uuid=False),
            sa.ForeignKey("propriedades.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("identificador", sa.String(50), nullable=False),
        sa.Column("tipo_unidade", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="disponivel"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('disponivel', 'alugado')", name="ck_unidade_status"),
    )
    op.create_index("ix_unidades_propriedade_id", "unidades", ["propriedade_id"])

    # 3. inquilinos
    op.create_table(
        "inquilinos",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column("nome_completo", sa.String(255), nullable=False),
        sa.Column("cpf", sa.String(14), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # 4. contratos
    op.create_table(
        "contratos",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "inquilino_id",
            UUID(as_uuid=False),
            sa.ForeignKey("inquilinos.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "unidade_id",
            UUID(as_uuid=False),
            sa.ForeignKey("unidades.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("data_inicio", sa.Date(), nullable=False),
        sa.Column("data_fim", sa.Date(), nullable=False),
        sa.Column("valor_inicial", sa.Numeric(12, 2), nullable=False),
        sa.Column("dia_vencimento", sa.Integer(), nullable=False),
        sa.Column("qtd_ocupantes", sa.Integer(), nullable=False, server_default="1"),
        _money("valor_iptu"),
        _money("valor_agua"),
        _money("valor_luz"),
        _money("valor_outros"),
        _money("desconto_pontualidade"),
        sa.Column("observacoes_contrato", sa.Text(), nullable=True),
        sa.Column("status_encerrado", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("dia_vencimento BETWEEN 1 AND 31", name="ck_contrato_dia_vencimento"),
    )
    op.create_index("ix_contratos_inquilino_id", "contratos", ["inquilino_id"])
    op.create_index("ix_contratos_unidade_id", "contratos", ["unidade_id"])
    op.create_index("idx_contrato_unidade_encerrado", "contratos", ["unidade_id", "status_encerrado"])
    op.create_index("idx_contrato_created_at", "contratos", ["created_at"])

    # 5. contrato_parcelas
    op.create_table(
        "contrato_parcelas",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "contrato_id",
            UUID(as_uuid=False),
            sa.ForeignKey("contratos.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "unidade_id",
            UUID(as_uuid=False),
            sa.ForeignKey("unidades.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "inquilino_id",
            UUID(as_uuid=False),
            sa.ForeignKey("inquilinos.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("numero_parcela", sa.Integer(), nullable=True),
        sa.Column("periodo_inicio", sa.Date(), nullable=True),
        sa.Column("periodo_fim", sa.Date(), nullable=True),
        sa.Column("data_vencimento", sa.Date(), nullable=False),
        _money("valor_base"),
        _money("valor_iptu"),
        _money("valor_agua"),
        _money("valor_luz"),
        _money("valor_outros"),
        _money("desconto_pontualidade"),
        sa.Column("status_pagamento", sa.String(20), nullable=False, server_default="pendente"),
        sa.Column("data_pagamento", sa.Date(), nullable=True),
        _money("valor_pago", nullable=True),
        sa.Column("descricao", sa.String(255), nullable=True),
        sa.Column("observacoes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("contrato_id", "numero_parcela", name="uq_parcela_contrato_numero"),
        sa.CheckConstraint(
            "status_pagamento IN ('pendente', 'pago', 'atrasado', 'cancelado')",
            name="ck_parcela_status_pagamento",
        ),
    )
    op.create_index("ix_contrato_parcelas_contrato_id", "contrato_parcelas", ["contrato_id"])
    op.create_index("ix_contrato_parcelas_unidade_id", "contrato_parcelas", ["unidade_id"])
    op.create_index("ix_contrato_parcelas_inquilino_id", "contrato_parcelas", ["inquilino_id"])
    op.create_index("ix_contrato_parcelas_data_vencimento", "contrato_parcelas", ["data_vencimento"])
    op.create_index("ix_contrato_parcelas_status_pagamento", "contrato_parcelas", ["status_pagamento"])
    op.create_index(
        "idx_parcela_status_vencimento",
        "contrato_parcelas",
        ["status_pagamento", "data_vencimento"],
    )

    # 6. contrato_renovacoes
    op.create_table(
        "contrato_renovacoes",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "contrato_id",
            UUID(as_uuid=False),
            sa.ForeignKey("contratos.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("data_renovacao", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("valor_anterior", sa.Numeric(12, 2), nullable=False),
        sa.Column("valor_novo", sa.Numeric(12, 2), nullable=False),
        sa.Column("data_inicio_anterior", sa.Date(), nullable=False),
        sa.Column("data_fim_anterior", sa.Date(), nullable=False),
        sa.Column("data_inicio_novo", sa.Date(), nullable=False),
        sa.Column("data_fim_novo", sa.Date(), nullable=False),
        sa.Column("indice_reajuste", sa.String(50), nullable=True),
        sa.Column("observacoes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_contrato_renovacoes_contrato_id", "contrato_renovacoes", ["contrato_id"])

    # 7. auditoria
    op.create_table(
        "auditoria",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column("usuario_id", sa.String(64), nullable=True),
        sa.Column("acao", sa.String(50), nullable=False),
        sa.Column("entidade", sa.String(100), nullable=False),
        sa.Column("entidade_id", sa.String(64), nullable=True),
        sa.Column("dados_antigos", sa.JSON(), nullable=True),
        sa.Column("dados_novos", sa.JSON(), nullable=True),
        sa.Column("detalhes", sa.Text(), nullable=True),
        sa.Column("ip", sa.String(50), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_auditoria_usuario_id", "auditoria", ["usuario_id"])
    op.create_index("idx_auditoria_entidade", "auditoria", ["entidade", "entidade_id"])
    op.create_index("idx_auditoria_created_at", "auditoria", ["created_at"])


def downgrade() -> None:
    """Drop billing tables."""
    op.drop_table("auditoria")
    op.drop_table("contrato_renovacoes")
    op.drop_table("contrato_parcelas")
    op.drop_table("contratos")
    op.drop_table("inquilinos")
    op.drop_table("unidades")
    op.drop_table("propriedades")
