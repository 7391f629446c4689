"""Installment service: payment recording, standalone charges and search."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import Row, and_, func, select, update
from sqlalchemy.orm import Session, aliased

from gestao_imoveis.core.date_helpers import today as current_date
from gestao_imoveis.core.exceptions import NotFoundError, ValidationError
from gestao_imoveis.core.identifiers import optional_uuid, require_uuid, require_uuids
from gestao_imoveis.core.logging import get_logger
from gestao_imoveis.domain.entities.billing import InstallmentFilter, PaymentStatus
from gestao_imoveis.domain.services.audit_service import (
    ActorContext,
    AuditAction,
    AuditEntity,
    AuditService,
    snapshot,
)
from gestao_imoveis.domain.services.payment_status import parse_status, status_clause
from gestao_imoveis.infrastructure.database.base import transaction
from gestao_imoveis.infrastructure.database.models import (
    Contract,
    Installment,
    Property,
    Tenant,
    Unit,
)

logger = get_logger(__name__)

ZERO = Decimal("0.00")

PATCHABLE_FIELDS = (
    "data_vencimento",
    "valor_base",
    "valor_iptu",
    "valor_agua",
    "valor_luz",
    "valor_outros",
    "desconto_pontualidade",
    "data_pagamento",
    "valor_pago",
    "status_pagamento",
    "descricao",
    "observacoes",
)

# Filter value meaning "any status"
ALL_STATUSES = "todos"

INVALID_INSTALLMENT_ID = "ID da parcela inválido."


class InstallmentService:
    """Operations on individual installments and installment sets."""

    def __init__(self, db_session: Session, audit: Optional[AuditService] = None) -> None:
        """Initialize installment service.

        Args:
            db_session: Database session (unit of work)
            audit: Audit sink; None disables auditing
        """
        self.db = db_session
        self.audit = audit

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _detail_query(self):
        """Installments with tenant, unit and property names.

        Standalone charges without unit/tenant fall back to the linked
        contract's unit/tenant.
        """
        unit = aliased(Unit)
        tenant = aliased(Tenant)
        prop = aliased(Property)
        return (
            select(
                Installment,
                tenant.nome_completo.label("inquilino_nome"),
                tenant.cpf.label("inquilino_cpf"),
                unit.identificador.label("unidade_identificador"),
                unit.tipo_unidade.label("tipo_unidade"),
                prop.id.label("imovel_id"),
                prop.nome.label("imovel_nome"),
                prop.endereco.label("imovel_endereco"),
                prop.cidade.label("imovel_cidade"),
            )
            .outerjoin(Contract, Installment.contrato_id == Contract.id)
            .outerjoin(
                tenant,
                tenant.id == func.coalesce(Installment.inquilino_id, Contract.inquilino_id),
            )
            .outerjoin(unit, unit.id == func.coalesce(Installment.unidade_id, Contract.unidade_id))
            .outerjoin(prop, unit.propriedade_id == prop.id)
        ), prop, tenant

    def get(self, installment_id: str) -> Row:
        """Get one installment with joined names.

        Raises:
            NotFoundError: If the installment does not exist
        """
        installment_id = require_uuid(installment_id, INVALID_INSTALLMENT_ID)
        query, _, _ = self._detail_query()
        row = self.db.execute(query.where(Installment.id == installment_id)).first()
        if row is None:
            raise NotFoundError("Parcela não encontrada.")
        return row

    def list_for_contract(self, contract_id: str) -> list[Installment]:
        """Installments of a contract ordered by numero_parcela (standalone charges last).

        Raises:
            NotFoundError: If the contract does not exist
        """
        contract_id = require_uuid(contract_id, "ID do contrato inválido.")
        if self.db.get(Contract, contract_id) is None:
            raise NotFoundError("Contrato não encontrado.")

        result = self.db.execute(
            select(Installment)
            .where(Installment.contrato_id == contract_id)
            .order_by(
                Installment.numero_parcela.is_(None),
                Installment.numero_parcela,
                Installment.data_vencimento,
            )
        )
        return list(result.scalars().all())

    def filter(self, criteria: InstallmentFilter, today: Optional[date] = None) -> list[Row]:
        """Search installments across contracts.

        Every supplied criterion narrows the result; status uses the derived
        rule, so `atrasado` also matches pending rows whose due date passed.

        Args:
            criteria: Due-date range, status, property, unit, tenant, contract
            today: Reference date for derived status (defaults to today)

        Returns:
            Rows of (Installment, joined names...) ordered by due date then
            tenant name
        """
        criteria = criteria.model_copy(
            update={
                field: optional_uuid(getattr(criteria, field), f"Filtro {field} inválido.")
                for field in ("imovel_id", "unidade_id", "inquilino_id", "contrato_id")
            }
        )
        query, prop, tenant = self._detail_query()

        conditions = []
        if criteria.dt_inicio:
            conditions.append(Installment.data_vencimento >= criteria.dt_inicio)
        if criteria.dt_fim:
            conditions.append(Installment.data_vencimento <= criteria.dt_fim)
        if criteria.status and criteria.status != ALL_STATUSES:
            conditions.append(
                status_clause(
                    criteria.status,
                    Installment.status_pagamento,
                    Installment.data_vencimento,
                    today=today,
                )
            )
        if criteria.imovel_id:
            conditions.append(prop.id == criteria.imovel_id)
        if criteria.unidade_id:
            conditions.append(
                func.coalesce(Installment.unidade_id, Contract.unidade_id) == criteria.unidade_id
            )
        if criteria.inquilino_id:
            conditions.append(
                func.coalesce(Installment.inquilino_id, Contract.inquilino_id)
                == criteria.inquilino_id
            )
        if criteria.contrato_id:
            conditions.append(Installment.contrato_id == criteria.contrato_id)

        if conditions:
            query = query.where(and_(*conditions))

        rows = self.db.execute(
            query.order_by(Installment.data_vencimento.asc(), tenant.nome_completo.asc())
        ).all()

        logger.debug("Installments filtered", count=len(rows), **criteria.model_dump(exclude_none=True))
        return list(rows)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def bulk_set_status(
        self,
        ids: Sequence[str],
        status: str,
        actor: Optional[ActorContext] = None,
        today: Optional[date] = None,
    ) -> int:
        """Set the stored status of many installments in one statement.

        Marking as `pago` stamps today's date only on rows without a payment
        date. Unknown ids are ignored.

        Returns:
            Number of rows updated

        Raises:
            ValidationError: Empty or malformed id list, or unknown status
        """
        if not ids:
            raise ValidationError("IDs são obrigatórios.")
        unique_ids = require_uuids(ids, "IDs de parcela inválidos.")
        if not status:
            raise ValidationError("Novo status é obrigatório.")
        new_status = parse_status(status)

        values: dict[str, Any] = {
            "status_pagamento": new_status.value,
            "updated_at": func.now(),
        }
        if new_status is PaymentStatus.PAGO:
            values["data_pagamento"] = func.coalesce(
                Installment.data_pagamento, today or current_date()
            )

        with transaction(self.db):
            result = self.db.execute(
                update(Installment)
                .where(Installment.id.in_(unique_ids))
                .values(values)
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount
        self.db.expire_all()

        summary = f"{updated} parcela(s) marcada(s) como {new_status.label}"
        logger.info("Installments bulk updated", status=new_status.value, requested=len(unique_ids), updated=updated)
        self._audit(
            actor,
            AuditAction.BULK_UPDATE,
            None,
            dados_novos={"ids": unique_ids, "status": new_status.value},
            detalhes=summary,
        )
        return updated

    def create_charge(
        self,
        data: dict[str, Any],
        actor: Optional[ActorContext] = None,
    ) -> Installment:
        """Create a standalone charge (avulso) for a unit.

        The charge is linked to the unit's most recently created open
        contract, if any, and inherits that contract's tenant when none is
        given. It has no numero_parcela and no billing period.

        Raises:
            ValidationError: Missing unit or due date
            NotFoundError: If the unit does not exist
        """
        unidade_id = data.get("unidade_id")
        data_vencimento = data.get("data_vencimento")
        if not unidade_id or not data_vencimento:
            raise ValidationError("Unidade e vencimento são obrigatórios.")
        unidade_id = require_uuid(unidade_id, "ID da unidade inválido.")
        inquilino_id = optional_uuid(data.get("inquilino_id"), "ID do inquilino inválido.")

        with transaction(self.db):
            if self.db.get(Unit, unidade_id) is None:
                raise NotFoundError("Unidade não encontrada.")

            open_contract = self.db.execute(
                select(Contract)
                .where(Contract.unidade_id == unidade_id)
                .where(Contract.status_encerrado.is_(False))
                .order_by(Contract.created_at.desc())
                .limit(1)
            ).scalar_one_or_none()

            if not inquilino_id and open_contract is not None:
                inquilino_id = open_contract.inquilino_id

            charge = Installment(
                contrato_id=open_contract.id if open_contract else None,
                unidade_id=unidade_id,
                inquilino_id=inquilino_id,
                numero_parcela=None,
                data_vencimento=data_vencimento,
                descricao=data.get("descricao"),
                valor_base=data.get("valor_base") or ZERO,
                valor_iptu=data.get("valor_iptu") or ZERO,
                valor_agua=data.get("valor_agua") or ZERO,
                valor_luz=data.get("valor_luz") or ZERO,
                valor_outros=data.get("valor_outros") or ZERO,
                desconto_pontualidade=data.get("desconto_pontualidade") or ZERO,
                observacoes=data.get("observacoes"),
                status_pagamento=PaymentStatus.PENDENTE.value,
            )
            self.db.add(charge)

        logger.info(
            "Standalone charge created",
            parcela_id=charge.id,
            unidade_id=unidade_id,
            contrato_id=charge.contrato_id,
        )
        self._audit(
            actor,
            AuditAction.CREATE,
            charge.id,
            dados_novos=snapshot(charge),
            detalhes="Parcela avulsa criada",
        )
        return charge

    def update(
        self,
        installment_id: str,
        changes: dict[str, Any],
        actor: Optional[ActorContext] = None,
        today: Optional[date] = None,
    ) -> Installment:
        """Patch an installment (record a payment, adjust amounts).

        Fields that are absent or None keep their stored value. Setting
        `pago` without a payment date, on a row that has none, stamps today.

        Raises:
            NotFoundError: If the installment does not exist
            ValidationError: Unknown status
        """
        applied = {
            field: value
            for field, value in changes.items()
            if field in PATCHABLE_FIELDS and value is not None
        }
        if "status_pagamento" in applied:
            applied["status_pagamento"] = parse_status(applied["status_pagamento"]).value

        installment_id = require_uuid(installment_id, INVALID_INSTALLMENT_ID)
        with transaction(self.db):
            installment = self.db.get(Installment, installment_id)
            if installment is None:
                raise NotFoundError("Parcela não encontrada.")
            before = snapshot(installment)

            for field, value in applied.items():
                setattr(installment, field, value)

            if (
                installment.status_pagamento == PaymentStatus.PAGO.value
                and installment.data_pagamento is None
            ):
                installment.data_pagamento = today or current_date()

        logger.info("Installment updated", parcela_id=installment_id, fields=sorted(applied))
        self._audit(
            actor,
            AuditAction.UPDATE,
            installment_id,
            dados_antigos=before,
            dados_novos=snapshot(installment),
        )
        return installment

    def delete(self, installment_id: str, actor: Optional[ActorContext] = None) -> None:
        """Delete an installment.

        Raises:
            NotFoundError: If the installment does not exist
        """
        installment_id = require_uuid(installment_id, INVALID_INSTALLMENT_ID)
        with transaction(self.db):
            installment = self.db.get(Installment, installment_id)
            if installment is None:
                raise NotFoundError("Parcela não encontrada.")
            before = snapshot(installment)
            self.db.delete(installment)

        logger.info("Installment deleted", parcela_id=installment_id)
        self._audit(actor, AuditAction.DELETE, installment_id, dados_antigos=before)

    def _audit(
        self, actor: Optional[ActorContext], acao: str, entidade_id: Optional[str], **kwargs: Any
    ) -> None:
        if self.audit is not None:
            self.audit.record(actor, acao, AuditEntity.INSTALLMENT, entidade_id, **kwargs)
