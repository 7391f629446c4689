"""Installment generator: materializes billing periods as installment rows."""

from datetime import date
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from gestao_imoveis.core.config import Settings, get_settings
from gestao_imoveis.core.date_helpers import add_months, format_reference_label
from gestao_imoveis.core.exceptions import StateError, ValidationError
from gestao_imoveis.core.logging import get_logger
from gestao_imoveis.domain.entities.billing import BillingPeriod, GenerationMode, PaymentStatus
from gestao_imoveis.domain.services.period_calculator import (
    compute_due_date,
    iter_billing_periods,
    period_end_for,
)
from gestao_imoveis.infrastructure.database.models import Contract, Installment

logger = get_logger(__name__)


class InstallmentGenerator:
    """Generate installments for a contract in `next`, `manual` or `all` mode.

    Works inside the caller's transaction: rows are added and flushed, never
    committed here. The (contrato_id, numero_parcela) unique constraint
    rejects a concurrent generation that computed the same next number; the
    caller retries the whole unit of work (see run_with_conflict_retry).
    """

    def __init__(self, db_session: Session, settings: Optional[Settings] = None) -> None:
        """Initialize generator.

        Args:
            db_session: Database session (transaction owned by the caller)
            settings: Application settings (installment cap)
        """
        self.db = db_session
        self.settings = settings or get_settings()

    @property
    def max_installments(self) -> int:
        return self.settings.max_generated_installments

    def generate(
        self,
        contract: Contract,
        mode: Union[GenerationMode, str] = GenerationMode.NEXT,
        data_vencimento: Optional[date] = None,
        valor: Optional[Decimal] = None,
    ) -> list[Installment]:
        """Generate installments starting at the contract's next position.

        Args:
            contract: Contract to bill
            mode: next (one period), manual (one period, caller due date and
                amount) or all (every remaining period through data_fim)
            data_vencimento: Due date, mandatory in manual mode
            valor: Base amount override for manual mode

        Returns:
            Inserted installments, in sequence order

        Raises:
            StateError: If the contract is closed
            ValidationError: If the mode is unknown or manual data is missing
        """
        try:
            mode = GenerationMode(mode)
        except ValueError:
            raise ValidationError(
                "Modo de geração inválido.",
                details={"mode": mode, "allowed": [m.value for m in GenerationMode]},
            )

        if contract.status_encerrado:
            raise StateError("Não é possível gerar parcelas para um contrato encerrado.")

        if mode is GenerationMode.MANUAL and data_vencimento is None:
            raise ValidationError("Data de vencimento é obrigatória para modo manual.")

        next_numero, next_inicio = self.next_position(contract)

        if mode is GenerationMode.ALL:
            periods = self._remaining_periods(contract, next_numero, next_inicio)
        elif mode is GenerationMode.MANUAL:
            periods = [
                BillingPeriod(
                    periodo_inicio=next_inicio,
                    periodo_fim=self._period_end(contract, next_inicio),
                    data_vencimento=data_vencimento,
                )
            ]
        else:
            periods = [
                BillingPeriod(
                    periodo_inicio=next_inicio,
                    periodo_fim=self._period_end(contract, next_inicio),
                    data_vencimento=compute_due_date(next_inicio, contract.dia_vencimento),
                )
            ]

        valor_base = valor if (mode is GenerationMode.MANUAL and valor is not None) else None

        generated = [
            self._build(contract, numero, period, valor_base)
            for numero, period in enumerate(periods, start=next_numero)
        ]
        self.db.add_all(generated)
        self.db.flush()

        logger.info(
            "Installments generated",
            contrato_id=contract.id,
            mode=mode.value,
            count=len(generated),
            first_numero=next_numero if generated else None,
        )
        return generated

    def next_position(self, contract: Contract) -> tuple[int, date]:
        """Next numero_parcela and periodo_inicio for a contract.

        Continues one month after the last generated period, not from the
        contract's current data_fim, so schedules stay contiguous across
        renewals. Standalone charges (numero_parcela NULL) are ignored.
        """
        last = self.db.execute(
            select(Installment)
            .where(Installment.contrato_id == contract.id)
            .where(Installment.numero_parcela.is_not(None))
            .order_by(Installment.numero_parcela.desc())
            .limit(1)
        ).scalar_one_or_none()

        if last is None:
            return 1, contract.data_inicio

        next_inicio = add_months(last.periodo_inicio, 1) if last.periodo_inicio else contract.data_inicio
        return last.numero_parcela + 1, next_inicio

    def _remaining_periods(
        self, contract: Contract, next_numero: int, next_inicio: date
    ) -> list[BillingPeriod]:
        """Periods from next_inicio through data_fim, bounded by the installment cap."""
        remaining_slots = self.max_installments - next_numero + 1
        if remaining_slots <= 0:
            logger.warning(
                "Installment cap reached, nothing generated",
                contrato_id=contract.id,
                cap=self.max_installments,
            )
            return []

        return list(
            iter_billing_periods(
                start=next_inicio,
                due_day=contract.dia_vencimento,
                end=contract.data_fim,
                max_periods=remaining_slots,
            )
        )

    @staticmethod
    def _period_end(contract: Contract, periodo_inicio: date) -> date:
        """Month end of a single period, clipped to data_fim while the contract runs."""
        periodo_fim = period_end_for(periodo_inicio)
        if periodo_inicio <= contract.data_fim < periodo_fim:
            return contract.data_fim
        return periodo_fim

    def _build(
        self,
        contract: Contract,
        numero: int,
        period: BillingPeriod,
        valor_base: Optional[Decimal] = None,
    ) -> Installment:
        return Installment(
            contrato_id=contract.id,
            unidade_id=contract.unidade_id,
            inquilino_id=contract.inquilino_id,
            numero_parcela=numero,
            periodo_inicio=period.periodo_inicio,
            periodo_fim=period.periodo_fim,
            data_vencimento=period.data_vencimento,
            valor_base=valor_base if valor_base is not None else contract.valor_inicial,
            valor_iptu=contract.valor_iptu,
            valor_agua=contract.valor_agua,
            valor_luz=contract.valor_luz,
            valor_outros=contract.valor_outros,
            desconto_pontualidade=contract.desconto_pontualidade,
            status_pagamento=PaymentStatus.PENDENTE.value,
            descricao=f"Aluguel {format_reference_label(period.periodo_inicio)}",
        )
