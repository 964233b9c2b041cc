"""Type definitions for the payslip calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ItemType(str, Enum):
    """Payroll item types."""

    EARNING = "EARNING"
    DEDUCTION = "DEDUCTION"


@dataclass
class LineCandidate:
    """A candidate payroll item before persistence."""

    item_type: ItemType
    name: str
    amount: int  # minor units, never negative
    quantity: Decimal | None = None
    explanation: str | None = None


@dataclass
class ContractPortion:
    """Part of the period paid under one employment contract."""

    base_salary: int
    active_business_days: int


@dataclass
class EmployeePayInputs:
    """Everything needed to price one employee for one period.

    ``contracts`` is in contract order; the last one is the contract in force
    at the end of the period and sets the hourly rate for overtime.
    """

    employee_id: UUID
    business_days_in_period: int
    overtime_minutes: int
    shift_minutes: int
    contracts: list[ContractPortion] = field(default_factory=list)

    @property
    def base_salary(self) -> int:
        return self.contracts[-1].base_salary if self.contracts else 0

    @property
    def active_business_days(self) -> int:
        return sum(c.active_business_days for c in self.contracts)


@dataclass
class PayslipCalculation:
    """Result of pricing one employee."""

    employee_id: UUID
    lines: list[LineCandidate] = field(default_factory=list)

    @property
    def gross_pay(self) -> int:
        return sum(line.amount for line in self.lines if line.item_type == ItemType.EARNING)

    @property
    def deductions(self) -> int:
        return sum(line.amount for line in self.lines if line.item_type == ItemType.DEDUCTION)

    @property
    def net_pay(self) -> int:
        return self.gross_pay - self.deductions
