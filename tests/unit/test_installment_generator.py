"""Unit tests for InstallmentGenerator."""

from datetime import date
from decimal import Decimal

import pytest

from gestao_imoveis.core.exceptions import StateError, ValidationError
from gestao_imoveis.domain.entities.billing import GenerationMode
from gestao_imoveis.domain.services.installment_generator import InstallmentGenerator
from gestao_imoveis.infrastructure.database.models import Contract, Installment


@pytest.fixture
def bare_contract(db_session, sample_tenant, sample_unit) -> Contract:
    """Contract without any installment."""
    contract = Contract(
        inquilino_id=sample_tenant.id,
        unidade_id=sample_unit.id,
        data_inicio=date(2025, 1, 1),
        data_fim=date(2025, 6, 30),
        valor_inicial=Decimal("1000.00"),
        dia_vencimento=10,
        valor_iptu=Decimal("50.00"),
        desconto_pontualidade=Decimal("20.00"),
    )
    db_session.add(contract)
    db_session.commit()
    return contract


@pytest.fixture
def generator(db_session, settings) -> InstallmentGenerator:
    return InstallmentGenerator(db_session, settings)


class TestGenerateNext:
    """Tests for mode=next."""

    def test_first_installment(self, generator, bare_contract):
        """Test first installment starts at the contract start with number 1."""
        [parcela] = generator.generate(bare_contract, GenerationMode.NEXT)

        assert parcela.numero_parcela == 1
        assert parcela.periodo_inicio == date(2025, 1, 1)
        assert parcela.periodo_fim == date(2025, 1, 31)
        assert parcela.data_vencimento == date(2025, 1, 10)
        assert parcela.valor_base == Decimal("1000.00")
        assert parcela.valor_iptu == Decimal("50.00")
        assert parcela.desconto_pontualidade == Decimal("20.00")
        assert parcela.status_pagamento == "pendente"
        assert parcela.descricao == "Aluguel 01/2025"

    def test_next_continues_sequence(self, generator, bare_contract):
        """Test each call adds one installment after the last period."""
        generator.generate(bare_contract, "next")
        [second] = generator.generate(bare_contract, "next")

        assert second.numero_parcela == 2
        assert second.periodo_inicio == date(2025, 2, 1)
        assert second.data_vencimento == date(2025, 2, 10)

    def test_next_ignores_standalone_charges(self, db_session, generator, bare_contract):
        """Test standalone charges do not affect numbering."""
        db_session.add(
            Installment(
                contrato_id=bare_contract.id,
                data_vencimento=date(2025, 3, 1),
                valor_base=Decimal("80"),
            )
        )
        db_session.flush()

        [parcela] = generator.generate(bare_contract, "next")
        assert parcela.numero_parcela == 1

    def test_period_end_clipped_to_contract_end(self, generator, bare_contract):
        """Test a period running past data_fim ends on data_fim."""
        bare_contract.data_fim = date(2025, 1, 20)

        [parcela] = generator.generate(bare_contract, "next")

        assert parcela.periodo_inicio == date(2025, 1, 1)
        assert parcela.periodo_fim == date(2025, 1, 20)

    def test_period_after_contract_end_not_clipped(self, generator, bare_contract):
        """Test periods starting after data_fim keep the full month."""
        for _ in range(6):
            generator.generate(bare_contract, "next")

        [seventh] = generator.generate(bare_contract, "next")

        assert seventh.periodo_inicio == date(2025, 7, 1)
        assert seventh.periodo_fim == date(2025, 7, 31)

    def test_total_matches_components(self, generator, bare_contract):
        """Test total is base plus add-ons minus discount."""
        [parcela] = generator.generate(bare_contract, "next")
        assert parcela.valor_total == Decimal("1030.00")


class TestGenerateManual:
    """Tests for mode=manual."""

    def test_manual_uses_given_due_date_and_amount(self, generator, bare_contract):
        """Test manual overrides due date and base amount."""
        [parcela] = generator.generate(
            bare_contract, "manual", data_vencimento=date(2025, 1, 25), valor=Decimal("750.00")
        )

        assert parcela.numero_parcela == 1
        assert parcela.data_vencimento == date(2025, 1, 25)
        assert parcela.valor_base == Decimal("750.00")

    def test_manual_defaults_to_contract_rent(self, generator, bare_contract):
        """Test manual without amount uses the contract rent."""
        [parcela] = generator.generate(bare_contract, "manual", data_vencimento=date(2025, 1, 25))
        assert parcela.valor_base == Decimal("1000.00")

    def test_manual_period_clipped_to_contract_end(self, generator, bare_contract):
        """Test manual mode clips the period end like mode=all."""
        bare_contract.data_fim = date(2025, 1, 15)

        [parcela] = generator.generate(bare_contract, "manual", data_vencimento=date(2025, 1, 10))

        assert parcela.periodo_fim == date(2025, 1, 15)

    def test_manual_requires_due_date(self, db_session, generator, bare_contract):
        """Test manual without due date fails and writes nothing."""
        with pytest.raises(ValidationError):
            generator.generate(bare_contract, "manual")
        assert db_session.query(Installment).count() == 0


class TestGenerateAll:
    """Tests for mode=all."""

    def test_six_month_schedule(self, generator, bare_contract):
        """Test Jan-Jun contract with due day 10 yields six installments."""
        generated = generator.generate(bare_contract, "all")

        assert [p.numero_parcela for p in generated] == [1, 2, 3, 4, 5, 6]
        assert [p.data_vencimento for p in generated] == [date(2025, m, 10) for m in range(1, 7)]
        assert generated[-1].periodo_fim == date(2025, 6, 30)

    def test_all_after_next_fills_the_rest(self, generator, bare_contract):
        """Test all continues from the last generated installment."""
        generator.generate(bare_contract, "next")
        generated = generator.generate(bare_contract, "all")

        assert [p.numero_parcela for p in generated] == [2, 3, 4, 5, 6]
        assert generated[0].periodo_inicio == date(2025, 2, 1)

    def test_all_when_schedule_complete_generates_nothing(self, generator, bare_contract):
        """Test all on a fully generated contract is a no-op."""
        generator.generate(bare_contract, "all")
        assert generator.generate(bare_contract, "all") == []

    def test_all_is_capped(self, db_session, generator, bare_contract):
        """Test a 15-year contract produces at most 120 installments."""
        bare_contract.data_fim = date(2039, 12, 31)
        db_session.flush()

        generated = generator.generate(bare_contract, "all")

        assert len(generated) == 120
        assert generated[-1].numero_parcela == 120

    def test_cap_counts_existing_installments(self, db_session, generator, bare_contract):
        """Test numbering never exceeds the cap across calls."""
        bare_contract.data_fim = date(2039, 12, 31)
        db_session.flush()
        for _ in range(5):
            generator.generate(bare_contract, "next")

        generated = generator.generate(bare_contract, "all")
        assert len(generated) == 115
        assert max(p.numero_parcela for p in generated) == 120


class TestGenerateRejected:
    """Tests for invalid generation requests."""

    def test_closed_contract(self, db_session, generator, bare_contract):
        """Test closed contracts cannot be billed."""
        bare_contract.status_encerrado = True
        db_session.flush()

        with pytest.raises(StateError):
            generator.generate(bare_contract, "next")
        assert db_session.query(Installment).count() == 0

    def test_unknown_mode(self, generator, bare_contract):
        """Test unknown mode raises ValidationError."""
        with pytest.raises(ValidationError):
            generator.generate(bare_contract, "weekly")
