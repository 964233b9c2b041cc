"""Payslip calculation in integer minor units."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from hr_engine.calculators.types import (
    ContractPortion,
    EmployeePayInputs,
    ItemType,
    LineCandidate,
    PayslipCalculation,
)

_MINUTES_PER_HOUR = Decimal(60)


def round_minor(value: Decimal) -> int:
    """Round a Decimal amount to whole minor units, half up."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PayslipCalculator:
    """Prices one employee's monthly payslip.

    Pipeline (stable order):
    1) Base salary per contract, each prorated by the business days that
       contract was active in the period
    2) Overtime premium: overtime hours x hourly rate x multiplier, where the
       hourly rate is the latest contract's base salary / (business days in
       period x shift hours)
    3) Statutory deduction: flat rate of gross, capped at gross

    Intermediate values are Decimals; every line is rounded to minor units
    once, and gross, deductions and net are sums of those rounded lines, so
    net = gross - deductions holds exactly.
    """

    def __init__(self, overtime_multiplier: Decimal, deduction_rate: Decimal):
        if overtime_multiplier < 0:
            raise ValueError("Overtime multiplier must not be negative")
        if not Decimal(0) <= deduction_rate <= Decimal(1):
            raise ValueError("Deduction rate must be between 0 and 1")
        self.overtime_multiplier = overtime_multiplier
        self.deduction_rate = deduction_rate

    def calculate(self, inputs: EmployeePayInputs) -> PayslipCalculation:
        result = PayslipCalculation(employee_id=inputs.employee_id)

        for contract in inputs.contracts:
            result.lines.append(
                LineCandidate(
                    item_type=ItemType.EARNING,
                    name="Base Salary",
                    amount=self._prorated_base(contract, inputs.business_days_in_period),
                    quantity=Decimal(contract.active_business_days),
                    explanation=(
                        f"{contract.base_salary} x {contract.active_business_days}"
                        f"/{inputs.business_days_in_period} business days"
                    ),
                )
            )

        overtime = self._overtime_premium(inputs)
        if overtime > 0:
            hours = (Decimal(inputs.overtime_minutes) / _MINUTES_PER_HOUR).quantize(Decimal("0.01"))
            result.lines.append(
                LineCandidate(
                    item_type=ItemType.EARNING,
                    name="Overtime Premium",
                    amount=overtime,
                    quantity=hours,
                    explanation=f"{hours}h x hourly rate x {self.overtime_multiplier}",
                )
            )

        gross = result.gross_pay
        deduction = min(gross, round_minor(Decimal(gross) * self.deduction_rate))
        if deduction > 0:
            result.lines.append(
                LineCandidate(
                    item_type=ItemType.DEDUCTION,
                    name="Statutory Deduction",
                    amount=deduction,
                    explanation=f"{self.deduction_rate} of gross {gross}",
                )
            )

        return result

    def hourly_rate(self, inputs: EmployeePayInputs) -> Decimal:
        if inputs.business_days_in_period <= 0 or inputs.shift_minutes <= 0:
            return Decimal(0)
        shift_hours = Decimal(inputs.shift_minutes) / _MINUTES_PER_HOUR
        return Decimal(inputs.base_salary) / (Decimal(inputs.business_days_in_period) * shift_hours)

    @staticmethod
    def _prorated_base(contract: ContractPortion, business_days_in_period: int) -> int:
        if business_days_in_period <= 0:
            return 0
        if contract.active_business_days >= business_days_in_period:
            return contract.base_salary
        fraction = Decimal(contract.active_business_days) / Decimal(business_days_in_period)
        return round_minor(Decimal(contract.base_salary) * fraction)

    def _overtime_premium(self, inputs: EmployeePayInputs) -> int:
        if inputs.overtime_minutes <= 0:
            return 0
        hours = Decimal(inputs.overtime_minutes) / _MINUTES_PER_HOUR
        return round_minor(hours * self.hourly_rate(inputs) * self.overtime_multiplier)
