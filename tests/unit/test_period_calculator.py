"""Unit tests for the billing period calculator."""

from datetime import date, timedelta

import pytest

from gestao_imoveis.core.date_helpers import add_months, format_reference_label, with_day
from gestao_imoveis.core.exceptions import ValidationError
from gestao_imoveis.domain.services.period_calculator import (
    compute_due_date,
    iter_billing_periods,
    period_end_for,
    validate_due_day,
)


class TestDateHelpers:
    """Tests for month arithmetic helpers."""

    def test_add_months_clips_to_month_end(self):
        """Test Jan 31 + 1 month is Feb 28."""
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)

    def test_add_months_leap_year(self):
        """Test Jan 31 + 1 month is Feb 29 in a leap year."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_with_day_clips(self):
        """Test day 31 in April clips to the 30th."""
        assert with_day(date(2025, 4, 5), 31) == date(2025, 4, 30)

    def test_reference_label(self):
        """Test MM/YYYY label."""
        assert format_reference_label(date(2025, 3, 1)) == "03/2025"


class TestDueDate:
    """Tests for compute_due_date."""

    def test_due_day_in_start_month(self):
        """Test due day after period start stays in the same month."""
        assert compute_due_date(date(2025, 1, 1), 10) == date(2025, 1, 10)

    def test_due_day_before_start_moves_to_next_month(self):
        """Test due day before period start falls in the following month."""
        assert compute_due_date(date(2025, 1, 15), 10) == date(2025, 2, 10)

    def test_due_day_equal_to_start(self):
        """Test due day equal to start day is the start itself."""
        assert compute_due_date(date(2025, 1, 15), 15) == date(2025, 1, 15)

    def test_due_day_clipped_in_short_month(self):
        """Test due day 31 in February clips to the last day."""
        assert compute_due_date(date(2025, 2, 1), 31) == date(2025, 2, 28)

    def test_due_day_rolls_over_year(self):
        """Test December period with earlier due day is due in January."""
        assert compute_due_date(date(2025, 12, 20), 5) == date(2026, 1, 5)

    @pytest.mark.parametrize("due_day", [0, 32, -1])
    def test_invalid_due_day(self, due_day):
        """Test due day outside 1-31 is rejected."""
        with pytest.raises(ValidationError):
            validate_due_day(due_day)


class TestIterBillingPeriods:
    """Tests for iter_billing_periods."""

    def test_six_month_contract(self):
        """Test Jan-Jun 2025 with due day 10 yields six periods due on the 10th."""
        periods = list(iter_billing_periods(date(2025, 1, 1), 10, end=date(2025, 6, 30)))

        assert len(periods) == 6
        assert [p.data_vencimento for p in periods] == [date(2025, m, 10) for m in range(1, 7)]
        assert periods[0].periodo_inicio == date(2025, 1, 1)
        assert periods[0].periodo_fim == date(2025, 1, 31)
        assert periods[-1].periodo_fim == date(2025, 6, 30)

    def test_periods_are_contiguous(self):
        """Test each period starts the day after the previous one ends."""
        periods = list(iter_billing_periods(date(2025, 1, 31), 5, end=date(2026, 1, 30)))

        for previous, current in zip(periods, periods[1:]):
            assert current.periodo_inicio == previous.periodo_fim + timedelta(days=1)
            assert previous.periodo_inicio <= previous.periodo_fim

    def test_month_end_start_does_not_drift(self):
        """Test a contract starting on the 31st keeps returning to the 31st."""
        periods = list(iter_billing_periods(date(2025, 1, 31), 5, max_periods=3))

        assert [p.periodo_inicio for p in periods] == [
            date(2025, 1, 31),
            date(2025, 2, 28),
            date(2025, 3, 31),
        ]

    def test_last_period_clipped_to_end(self):
        """Test partial last month ends on the contract end."""
        periods = list(iter_billing_periods(date(2025, 1, 1), 10, end=date(2025, 3, 15)))

        assert len(periods) == 3
        assert periods[-1].periodo_inicio == date(2025, 3, 1)
        assert periods[-1].periodo_fim == date(2025, 3, 15)

    def test_end_equal_to_start_yields_nothing(self):
        """Test no period starts on or after the end bound."""
        assert list(iter_billing_periods(date(2025, 1, 1), 10, end=date(2025, 1, 1))) == []

    def test_max_periods_caps_output(self):
        """Test long contracts stop at the cap."""
        periods = list(iter_billing_periods(date(2025, 1, 1), 10, end=date(2040, 1, 1), max_periods=120))
        assert len(periods) == 120

    def test_unbounded_uses_cap(self):
        """Test without end only the cap limits the sequence."""
        assert len(list(iter_billing_periods(date(2025, 1, 1), 10, max_periods=4))) == 4

    def test_period_end_for(self):
        """Test single period end is one month minus a day."""
        assert period_end_for(date(2025, 2, 1)) == date(2025, 2, 28)
        assert period_end_for(date(2025, 1, 15)) == date(2025, 2, 14)
