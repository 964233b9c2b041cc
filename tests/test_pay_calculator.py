"""Tests for the payslip calculator."""

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st

from hr_engine.calculators.pay_calculator import PayslipCalculator, round_minor
from hr_engine.calculators.types import ContractPortion, EmployeePayInputs, ItemType


def make_inputs(base_salary=10_000_000, active_business_days=None, **overrides) -> EmployeePayInputs:
    """Inputs for a single contract covering the whole period unless overridden."""
    values = dict(
        employee_id=uuid4(),
        business_days_in_period=21,
        overtime_minutes=0,
        shift_minutes=540,
    )
    values.update(overrides)
    if active_business_days is None:
        active_business_days = values["business_days_in_period"]
    if "contracts" not in values:
        values["contracts"] = [ContractPortion(base_salary, active_business_days)]
    return EmployeePayInputs(**values)


@pytest.fixture
def calculator() -> PayslipCalculator:
    return PayslipCalculator(overtime_multiplier=Decimal("1.5"), deduction_rate=Decimal("0.05"))


class TestRoundMinor:
    def test_half_up(self):
        assert round_minor(Decimal("0.5")) == 1
        assert round_minor(Decimal("2.5")) == 3
        assert round_minor(Decimal("2.49")) == 2


class TestPayslipCalculator:
    def test_full_month_without_overtime(self, calculator):
        result = calculator.calculate(make_inputs())

        assert [line.name for line in result.lines] == ["Base Salary", "Statutory Deduction"]
        assert result.gross_pay == 10_000_000
        assert result.deductions == 500_000
        assert result.net_pay == 9_500_000

    def test_overtime_premium(self, calculator):
        result = calculator.calculate(make_inputs(overtime_minutes=60))

        overtime = next(line for line in result.lines if line.name == "Overtime Premium")
        # 10,000,000 / (21 days * 9h) * 1.5 = 79,365.08
        assert overtime.amount == 79_365
        assert overtime.quantity == Decimal("1.00")
        assert result.gross_pay == 10_079_365
        assert result.deductions == 503_968
        assert result.net_pay == 9_575_397

    def test_prorated_base_for_partial_month(self, calculator):
        result = calculator.calculate(make_inputs(base_salary=5_000_000, active_business_days=11))

        base = result.lines[0]
        assert base.item_type == ItemType.EARNING
        assert base.amount == 2_619_048
        assert base.quantity == Decimal(11)

    def test_zero_salary_has_no_deduction_line(self, calculator):
        result = calculator.calculate(make_inputs(base_salary=0))

        assert result.gross_pay == 0
        assert all(line.item_type == ItemType.EARNING for line in result.lines)

    def test_hourly_rate_without_business_days(self, calculator):
        assert calculator.hourly_rate(make_inputs(business_days_in_period=0)) == Decimal(0)

    def test_rejects_bad_configuration(self):
        with pytest.raises(ValueError):
            PayslipCalculator(overtime_multiplier=Decimal("-1"), deduction_rate=Decimal("0.05"))
        with pytest.raises(ValueError):
            PayslipCalculator(overtime_multiplier=Decimal("1.5"), deduction_rate=Decimal("1.2"))

    @given(
        base_salary=st.integers(min_value=0, max_value=10**11),
        active=st.integers(min_value=0, max_value=23),
        overtime=st.integers(min_value=0, max_value=6000),
        rate=st.decimals(min_value=0, max_value=1, places=4),
    )
    def test_payslip_reconciles(self, base_salary, active, overtime, rate):
        calculator = PayslipCalculator(overtime_multiplier=Decimal("1.5"), deduction_rate=rate)
        result = calculator.calculate(
            make_inputs(
                base_salary=base_salary,
                business_days_in_period=23,
                active_business_days=active,
                overtime_minutes=overtime,
            )
        )

        assert all(line.amount >= 0 for line in result.lines)
        assert result.net_pay == result.gross_pay - result.deductions
        assert 0 <= result.deductions <= result.gross_pay


class TestContractChange:
    def test_one_base_line_per_contract(self, calculator):
        # 10 business days on the old contract, 11 on the new one
        result = calculator.calculate(
            make_inputs(
                contracts=[
                    ContractPortion(base_salary=10_000_000, active_business_days=10),
                    ContractPortion(base_salary=10_000_000, active_business_days=11),
                ]
            )
        )

        base_lines = [line for line in result.lines if line.name == "Base Salary"]
        assert [line.amount for line in base_lines] == [4_761_905, 5_238_095]
        assert result.gross_pay == 10_000_000

    def test_raise_mid_month(self, calculator):
        result = calculator.calculate(
            make_inputs(
                contracts=[
                    ContractPortion(base_salary=8_000_000, active_business_days=10),
                    ContractPortion(base_salary=10_000_000, active_business_days=11),
                ]
            )
        )

        # 8,000,000 x 10/21 + 10,000,000 x 11/21
        assert result.gross_pay == 3_809_524 + 5_238_095

    def test_overtime_uses_latest_contract(self, calculator):
        inputs = make_inputs(
            overtime_minutes=60,
            contracts=[
                ContractPortion(base_salary=5_000_000, active_business_days=10),
                ContractPortion(base_salary=10_000_000, active_business_days=11),
            ],
        )

        assert inputs.base_salary == 10_000_000
        assert inputs.active_business_days == 21
        overtime = next(line for line in calculator.calculate(inputs).lines if line.name == "Overtime Premium")
        assert overtime.amount == 79_365

    def test_no_contracts_no_pay(self, calculator):
        result = calculator.calculate(make_inputs(contracts=[], overtime_minutes=120))

        assert result.lines == []
        assert result.net_pay == 0
