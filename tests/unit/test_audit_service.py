"""Unit tests for the audit sink."""

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from gestao_imoveis.domain.services.audit_service import (
    ActorContext,
    AuditAction,
    AuditEntity,
    AuditService,
)
from gestao_imoveis.infrastructure.database.models import AuditLog


class TestAuditService:
    """Tests for AuditService.record."""

    def test_record_writes_row(self, engine, db_session):
        """Test a record is persisted with actor and JSON payloads."""
        audit = AuditService(sessionmaker(bind=engine))

        audit.record(
            ActorContext(usuario_id="u-1", ip="127.0.0.1", user_agent="pytest"),
            AuditAction.RENEW,
            AuditEntity.CONTRACT,
            "c-1",
            dados_antigos={"valor_inicial": Decimal("1000.00"), "data_fim": date(2025, 6, 30)},
            dados_novos={"valor_inicial": Decimal("1100.00")},
            detalhes="Contrato renovado",
        )

        row = db_session.query(AuditLog).one()
        assert row.usuario_id == "u-1"
        assert row.acao == "RENOVAR"
        assert row.entidade == "Contrato"
        assert row.dados_antigos == {"valor_inicial": "1000.00", "data_fim": "2025-06-30"}
        assert row.ip == "127.0.0.1"

    def test_missing_actor_uses_system(self, engine, db_session):
        """Test records without actor are attributed to the system."""
        AuditService(sessionmaker(bind=engine)).record(None, AuditAction.CLOSE, AuditEntity.CONTRACT, "c-1")

        assert db_session.query(AuditLog).one().usuario_id == "system"

    def test_failure_is_swallowed(self):
        """Test a broken sink never raises into the caller."""

        def broken_factory():
            raise RuntimeError("database unavailable")

        AuditService(broken_factory).record(None, AuditAction.CREATE, AuditEntity.CONTRACT, "c-1")
