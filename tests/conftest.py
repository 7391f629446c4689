"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from typing import Any, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gestao_imoveis.api.dependencies import get_audit_service, get_db
from gestao_imoveis.api.main import app
from gestao_imoveis.core.config import Settings
from gestao_imoveis.domain.services.audit_service import ActorContext, AuditService
from gestao_imoveis.domain.services.contract_service import ContractService
from gestao_imoveis.domain.services.installment_service import InstallmentService
from gestao_imoveis.infrastructure.database.base import Base
from gestao_imoveis.infrastructure.database.models import Contract, Property, Tenant, Unit


class RecordingAuditService(AuditService):
    """Audit sink that keeps records in memory."""

    def __init__(self) -> None:
        super().__init__(session_factory=None)
        self.records: list[dict[str, Any]] = []

    def record(
        self,
        actor: Optional[ActorContext],
        acao: str,
        entidade: str,
        entidade_id: Optional[str] = None,
        dados_antigos: Optional[dict[str, Any]] = None,
        dados_novos: Optional[dict[str, Any]] = None,
        detalhes: Optional[str] = None,
    ) -> None:
        self.records.append(
            {
                "actor": actor,
                "acao": acao,
                "entidade": entidade,
                "entidade_id": entidade_id,
                "dados_antigos": dados_antigos,
                "dados_novos": dados_novos,
                "detalhes": detalhes,
            }
        )

    def actions(self) -> list[str]:
        return [r["acao"] for r in self.records]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def engine():
    """SQLite in-memory engine shared by every session of a test."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Single connection pool for shared in-memory DB
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()

    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, max_generated_installments=120, generation_max_retries=3)


@pytest.fixture
def audit() -> RecordingAuditService:
    return RecordingAuditService()


@pytest.fixture
def contract_service(db_session: Session, audit, settings) -> ContractService:
    return ContractService(db_session, audit, settings)


@pytest.fixture
def installment_service(db_session: Session, audit) -> InstallmentService:
    return InstallmentService(db_session, audit)


@pytest.fixture
def client(db_session: Session, audit) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with database and audit overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_service] = lambda: audit

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def actor_headers(user_id: str = "user-1") -> dict:
    """Helper to create the headers the upstream auth layer sets."""
    return {"X-User-Id": user_id, "User-Agent": "pytest"}


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_property(db_session: Session) -> Property:
    """Create a sample property."""
    prop = Property(nome="Edifício Aurora", endereco="Rua das Flores", numero="100", cidade="Curitiba")
    db_session.add(prop)
    db_session.commit()
    db_session.refresh(prop)
    return prop


@pytest.fixture
def sample_unit(db_session: Session, sample_property: Property) -> Unit:
    """Create a sample available unit."""
    unit = Unit(propriedade_id=sample_property.id, identificador="Apto 101", tipo_unidade="apartamento")
    db_session.add(unit)
    db_session.commit()
    db_session.refresh(unit)
    return unit


@pytest.fixture
def other_unit(db_session: Session, sample_property: Property) -> Unit:
    """Create a second unit in the same property."""
    unit = Unit(propriedade_id=sample_property.id, identificador="Apto 102", tipo_unidade="apartamento")
    db_session.add(unit)
    db_session.commit()
    db_session.refresh(unit)
    return unit


@pytest.fixture
def sample_tenant(db_session: Session) -> Tenant:
    """Create a sample tenant."""
    tenant = Tenant(nome_completo="Maria Souza", cpf="123.456.789-00", email="maria@example.com")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def other_tenant(db_session: Session) -> Tenant:
    """Create a second tenant."""
    tenant = Tenant(nome_completo="Ana Lima", cpf="987.654.321-00")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


def contract_payload(tenant: Tenant, unit: Unit, **overrides: Any) -> dict[str, Any]:
    """Contract creation data: Jan-Jun 2025, rent 1000, due day 10."""
    data = {
        "inquilino_id": tenant.id,
        "unidade_id": unit.id,
        "data_inicio": date(2025, 1, 1),
        "data_fim": date(2025, 6, 30),
        "valor_inicial": Decimal("1000.00"),
        "dia_vencimento": 10,
        "valor_iptu": Decimal("50.00"),
        "valor_agua": Decimal("30.00"),
        "desconto_pontualidade": Decimal("20.00"),
    }
    data.update(overrides)
    return data


@pytest.fixture
def sample_contract(
    contract_service: ContractService, sample_tenant: Tenant, sample_unit: Unit
) -> Contract:
    """Create a six-month contract with its full schedule."""
    return contract_service.create(contract_payload(sample_tenant, sample_unit))
