"""Contract lifecycle service: create, edit, close, renew, delete."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from gestao_imoveis.core.config import Settings, get_settings
from gestao_imoveis.core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from gestao_imoveis.core.identifiers import optional_uuid, require_uuid
from gestao_imoveis.core.logging import get_logger
from gestao_imoveis.domain.entities.billing import GenerationMode, PaymentStatus, UnitStatus
from gestao_imoveis.domain.services.audit_service import (
    ActorContext,
    AuditAction,
    AuditEntity,
    AuditService,
    snapshot,
)
from gestao_imoveis.domain.services.installment_generator import InstallmentGenerator
from gestao_imoveis.domain.services.period_calculator import validate_due_day
from gestao_imoveis.infrastructure.database.base import run_with_conflict_retry, transaction
from gestao_imoveis.infrastructure.database.models import (
    Contract,
    ContractRenewal,
    Installment,
    Tenant,
    Unit,
)

logger = get_logger(__name__)

REQUIRED_CREATE_FIELDS = (
    "inquilino_id",
    "unidade_id",
    "data_inicio",
    "data_fim",
    "valor_inicial",
    "dia_vencimento",
)

EDITABLE_FIELDS = (
    "data_inicio",
    "data_fim",
    "qtd_ocupantes",
    "valor_inicial",
    "dia_vencimento",
    "observacoes_contrato",
    "valor_iptu",
    "valor_agua",
    "valor_luz",
    "valor_outros",
    "desconto_pontualidade",
)

# Installment columns copied from the contract when pending rows are resynced
RESYNC_FIELDS = {
    "valor_base": "valor_inicial",
    "valor_iptu": "valor_iptu",
    "valor_agua": "valor_agua",
    "valor_luz": "valor_luz",
    "valor_outros": "valor_outros",
    "desconto_pontualidade": "desconto_pontualidade",
}

ZERO = Decimal("0.00")

INVALID_CONTRACT_ID = "ID do contrato inválido."


def periods_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Closed-interval overlap test: [start_a, end_a] ∩ [start_b, end_b] ≠ ∅."""
    return start_a <= end_b and end_a >= start_b


class ContractService:
    """Service for the contract lifecycle.

    Every multi-step operation runs as one transaction on the injected session;
    audit records are emitted after the commit.
    """

    def __init__(
        self,
        db_session: Session,
        audit: Optional[AuditService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialize contract service.

        Args:
            db_session: Database session (unit of work)
            audit: Audit sink; None disables auditing
            settings: Application settings
        """
        self.db = db_session
        self.audit = audit
        self.settings = settings or get_settings()
        self.generator = InstallmentGenerator(db_session, self.settings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, contract_id: str) -> Contract:
        """Load a contract with installments and renewal history.

        Raises:
            NotFoundError: If the contract does not exist
        """
        contract_id = require_uuid(contract_id, INVALID_CONTRACT_ID)
        contract = self.db.execute(
            select(Contract)
            .options(selectinload(Contract.parcelas), selectinload(Contract.renovacoes))
            .where(Contract.id == contract_id)
        ).unique().scalar_one_or_none()
        if contract is None:
            raise NotFoundError("Contrato não encontrado.")
        return contract

    def list_contracts(
        self,
        page: int = 1,
        per_page: int = 10,
        encerrado: Optional[bool] = None,
        unidade_id: Optional[str] = None,
        inquilino_id: Optional[str] = None,
    ) -> tuple[list[Contract], int]:
        """List contracts, newest first.

        Returns:
            Tuple of (contracts on the page, total matching)
        """
        unidade_id = optional_uuid(unidade_id, "ID da unidade inválido.")
        inquilino_id = optional_uuid(inquilino_id, "ID do inquilino inválido.")

        query = select(Contract)
        if encerrado is not None:
            query = query.where(Contract.status_encerrado == encerrado)
        if unidade_id:
            query = query.where(Contract.unidade_id == unidade_id)
        if inquilino_id:
            query = query.where(Contract.inquilino_id == inquilino_id)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0

        offset = (page - 1) * per_page
        items = (
            self.db.execute(
                query.order_by(Contract.created_at.desc()).offset(offset).limit(per_page)
            )
            .unique()
            .scalars()
            .all()
        )
        return list(items), total

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: dict[str, Any], actor: Optional[ActorContext] = None) -> Contract:
        """Create a contract and its full initial schedule.

        Inserting the contract, generating every installment of the initial
        period and marking the unit as rented happen in one transaction.

        Args:
            data: Contract fields (see REQUIRED_CREATE_FIELDS and EDITABLE_FIELDS)
            actor: Request context for the audit trail

        Returns:
            The created contract (installments loaded)

        Raises:
            ValidationError: Missing or inconsistent fields
            NotFoundError: Tenant or unit does not exist
        """
        missing = [f for f in REQUIRED_CREATE_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(
                "Inquilino, unidade, datas, valor e dia de vencimento são obrigatórios.",
                details={"missing": missing},
            )
        data = {
            **data,
            "inquilino_id": require_uuid(data["inquilino_id"], "ID do inquilino inválido."),
            "unidade_id": require_uuid(data["unidade_id"], "ID da unidade inválido."),
        }
        validate_due_day(data["dia_vencimento"])
        if data["data_fim"] <= data["data_inicio"]:
            raise ValidationError("Data fim deve ser posterior à data de início.")

        def _create() -> tuple[Contract, int]:
            with transaction(self.db):
                tenant = self.db.get(Tenant, data["inquilino_id"])
                if tenant is None:
                    raise NotFoundError("Inquilino não encontrado.")
                unit = self.db.get(Unit, data["unidade_id"])
                if unit is None:
                    raise NotFoundError("Unidade não encontrada.")

                contract = Contract(
                    inquilino_id=tenant.id,
                    unidade_id=unit.id,
                    data_inicio=data["data_inicio"],
                    data_fim=data["data_fim"],
                    valor_inicial=data["valor_inicial"],
                    dia_vencimento=data["dia_vencimento"],
                    qtd_ocupantes=data.get("qtd_ocupantes") or 1,
                    observacoes_contrato=data.get("observacoes_contrato"),
                    valor_iptu=data.get("valor_iptu") or ZERO,
                    valor_agua=data.get("valor_agua") or ZERO,
                    valor_luz=data.get("valor_luz") or ZERO,
                    valor_outros=data.get("valor_outros") or ZERO,
                    desconto_pontualidade=data.get("desconto_pontualidade") or ZERO,
                    status_encerrado=False,
                )
                self.db.add(contract)
                self.db.flush()

                parcelas = self.generator.generate(contract, GenerationMode.ALL)
                unit.status = UnitStatus.ALUGADO.value
            return contract, len(parcelas)

        contract, count = run_with_conflict_retry(
            self.db,
            _create,
            max_retries=self.settings.generation_max_retries,
            operation_name="create contract",
        )

        logger.info(
            "Contract created",
            contrato_id=contract.id,
            unidade_id=contract.unidade_id,
            parcelas=count,
        )
        self._audit(
            actor,
            AuditAction.CREATE,
            contract.id,
            dados_novos=snapshot(contract),
            detalhes=f"Contrato criado com {count} parcela(s)",
        )
        return self.get(contract.id)

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def update(
        self, contract_id: str, changes: dict[str, Any], actor: Optional[ActorContext] = None
    ) -> Contract:
        """Partially update a contract and resync its pending installments.

        Fields that are absent or None keep their stored value. After the
        update every scheduled installment still `pendente` is re-copied from the
        contract's rent, breakdown and discount; paid, cancelled and
        explicitly overdue rows keep their amounts.

        Raises:
            NotFoundError: If the contract does not exist
            ValidationError: If the resulting contract is inconsistent
        """
        contract_id = require_uuid(contract_id, INVALID_CONTRACT_ID)
        with transaction(self.db):
            contract = self.db.get(Contract, contract_id)
            if contract is None:
                raise NotFoundError("Contrato não encontrado.")
            before = snapshot(contract)

            applied = {
                field: value
                for field, value in changes.items()
                if field in EDITABLE_FIELDS and value is not None
            }
            if "dia_vencimento" in applied:
                validate_due_day(applied["dia_vencimento"])
            for field, value in applied.items():
                setattr(contract, field, value)

            if contract.data_fim <= contract.data_inicio:
                raise ValidationError("Data fim deve ser posterior à data de início.")

            self.db.flush()
            resynced = self._resync_pending(contract)

        logger.info(
            "Contract updated",
            contrato_id=contract_id,
            fields=sorted(applied),
            parcelas_resincronizadas=resynced,
        )
        self._audit(
            actor,
            AuditAction.UPDATE,
            contract_id,
            dados_antigos=before,
            dados_novos=snapshot(contract),
            detalhes=f"{resynced} parcela(s) pendente(s) atualizada(s)",
        )
        return contract

    def _resync_pending(self, contract: Contract) -> int:
        """Copy current rent and breakdown into every pending scheduled installment.

        Standalone charges (no numero_parcela) keep their own amounts.
        """
        result = self.db.execute(
            update(Installment)
            .where(Installment.contrato_id == contract.id)
            .where(Installment.numero_parcela.is_not(None))
            .where(Installment.status_pagamento == PaymentStatus.PENDENTE.value)
            .values(
                {
                    installment_col: getattr(contract, contract_col)
                    for installment_col, contract_col in RESYNC_FIELDS.items()
                }
                | {"updated_at": func.now()}
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def close(self, contract_id: str, actor: Optional[ActorContext] = None) -> tuple[Contract, int]:
        """Close a contract.

        Marks the contract closed, frees the unit and cancels every pending
        installment, all in one transaction. Paid and cancelled rows are left
        as they are.

        Returns:
            Tuple of (contract, number of installments cancelled)

        Raises:
            NotFoundError: If the contract does not exist
        """
        contract_id = require_uuid(contract_id, INVALID_CONTRACT_ID)
        with transaction(self.db):
            contract = self.db.get(Contract, contract_id)
            if contract is None:
                raise NotFoundError("Contrato não encontrado.")

            contract.status_encerrado = True

            unit = self.db.get(Unit, contract.unidade_id)
            if unit is not None:
                unit.status = UnitStatus.DISPONIVEL.value

            result = self.db.execute(
                update(Installment)
                .where(Installment.contrato_id == contract.id)
                .where(Installment.status_pagamento == PaymentStatus.PENDENTE.value)
                .values(
                    status_pagamento=PaymentStatus.CANCELADO.value,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session="fetch")
            )
            cancelled = result.rowcount

        logger.info("Contract closed", contrato_id=contract_id, parcelas_canceladas=cancelled)
        self._audit(
            actor,
            AuditAction.CLOSE,
            contract_id,
            dados_novos={"status_encerrado": True},
            detalhes=f"Contrato encerrado; {cancelled} parcela(s) cancelada(s)",
        )
        return contract, cancelled

    # ------------------------------------------------------------------
    # Renew
    # ------------------------------------------------------------------

    def renew(
        self,
        contract_id: str,
        data_fim_nova: Optional[date],
        valor_novo: Optional[Decimal],
        data_inicio_nova: Optional[date] = None,
        indice_reajuste: Optional[str] = None,
        observacoes: Optional[str] = None,
        actor: Optional[ActorContext] = None,
    ) -> Contract:
        """Renew a contract for a new period and rent.

        The new period must not intersect the period currently stored on the
        contract. On success a renewal record keeps the previous rent and
        bounds, then the contract's period and rent are overwritten. Existing
        installments are not touched; the next generation continues the
        schedule from the last generated period.

        Args:
            contract_id: Contract to renew
            data_fim_nova: End of the new period (required)
            valor_novo: New monthly rent (required)
            data_inicio_nova: Start of the new period (defaults to the day
                after the stored data_fim)
            indice_reajuste: Adjustment index label (IGP-M, IPCA, ...)
            observacoes: Free-text notes
            actor: Request context for the audit trail

        Raises:
            ValidationError: Missing fields or inverted period
            NotFoundError: If the contract does not exist
            StateError: If the contract is closed
            ConflictError: If the new period overlaps the stored one
        """
        if data_fim_nova is None or valor_novo is None:
            raise ValidationError("Nova data fim e novo valor são obrigatórios.")

        contract_id = require_uuid(contract_id, INVALID_CONTRACT_ID)
        with transaction(self.db):
            contract = self.db.get(Contract, contract_id)
            if contract is None:
                raise NotFoundError("Contrato não encontrado.")
            if contract.status_encerrado:
                raise StateError("Não é possível renovar um contrato encerrado.")

            novo_inicio = data_inicio_nova or contract.data_fim + timedelta(days=1)
            if data_fim_nova < novo_inicio:
                raise ValidationError("Nova data fim deve ser posterior ao início do novo período.")

            if periods_overlap(novo_inicio, data_fim_nova, contract.data_inicio, contract.data_fim):
                raise ConflictError(
                    "O novo período se sobrepõe ao período atual do contrato.",
                    details={
                        "periodo_atual": [contract.data_inicio, contract.data_fim],
                        "periodo_novo": [novo_inicio, data_fim_nova],
                    },
                )

            renewal = ContractRenewal(
                contrato_id=contract.id,
                valor_anterior=contract.valor_inicial,
                valor_novo=valor_novo,
                data_inicio_anterior=contract.data_inicio,
                data_fim_anterior=contract.data_fim,
                data_inicio_novo=novo_inicio,
                data_fim_novo=data_fim_nova,
                indice_reajuste=indice_reajuste,
                observacoes=observacoes,
            )
            self.db.add(renewal)
            before = snapshot(contract)

            contract.data_inicio = novo_inicio
            contract.data_fim = data_fim_nova
            contract.valor_inicial = valor_novo

        logger.info(
            "Contract renewed",
            contrato_id=contract_id,
            data_inicio=novo_inicio.isoformat(),
            data_fim=data_fim_nova.isoformat(),
            indice=indice_reajuste,
        )
        self._audit(
            actor,
            AuditAction.RENEW,
            contract_id,
            dados_antigos=before,
            dados_novos=snapshot(contract),
            detalhes=f"Contrato renovado até {data_fim_nova.isoformat()}",
        )
        return contract

    # ------------------------------------------------------------------
    # Generate
    # ------------------------------------------------------------------

    def generate_installments(
        self,
        contract_id: str,
        mode: str = GenerationMode.NEXT.value,
        data_vencimento: Optional[date] = None,
        valor: Optional[Decimal] = None,
        actor: Optional[ActorContext] = None,
    ) -> list[Installment]:
        """Generate installments for an existing contract in one transaction.

        Raises:
            NotFoundError: If the contract does not exist
            StateError: If the contract is closed
            ValidationError: Unknown mode or manual mode without due date
            ConflictError: If concurrent generations keep colliding
        """
        contract_id = require_uuid(contract_id, INVALID_CONTRACT_ID)

        def _generate() -> list[Installment]:
            with transaction(self.db):
                contract = self.db.get(Contract, contract_id)
                if contract is None:
                    raise NotFoundError("Contrato não encontrado.")
                return self.generator.generate(
                    contract, mode, data_vencimento=data_vencimento, valor=valor
                )

        generated = run_with_conflict_retry(
            self.db,
            _generate,
            max_retries=self.settings.generation_max_retries,
            operation_name="generate installments",
        )

        self._audit(
            actor,
            AuditAction.GENERATE,
            contract_id,
            dados_novos={"mode": str(mode), "numeros": [p.numero_parcela for p in generated]},
            detalhes=f"{len(generated)} parcela(s) gerada(s)",
        )
        return generated

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, contract_id: str, actor: Optional[ActorContext] = None) -> None:
        """Delete a contract together with its installments and renewals.

        Raises:
            NotFoundError: If the contract does not exist
        """
        contract_id = require_uuid(contract_id, INVALID_CONTRACT_ID)
        with transaction(self.db):
            contract = self.db.get(Contract, contract_id)
            if contract is None:
                raise NotFoundError("Contrato não encontrado.")
            before = snapshot(contract)
            self.db.delete(contract)

        logger.info("Contract deleted", contrato_id=contract_id)
        self._audit(actor, AuditAction.DELETE, contract_id, dados_antigos=before)

    def _audit(self, actor: Optional[ActorContext], acao: str, entidade_id: str, **kwargs: Any) -> None:
        if self.audit is not None:
            self.audit.record(actor, acao, AuditEntity.CONTRACT, entidade_id, **kwargs)
