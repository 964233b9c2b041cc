"""Pure calculations shared by the workflows."""

from hr_engine.calculators.business_days import business_days, count_business_days, month_bounds
from hr_engine.calculators.hours import ClockPairing, pair_clock_events, split_overtime
from hr_engine.calculators.pay_calculator import PayslipCalculator
from hr_engine.calculators.types import (
    ContractPortion,
    EmployeePayInputs,
    ItemType,
    LineCandidate,
    PayslipCalculation,
)

__all__ = [
    "business_days",
    "count_business_days",
    "month_bounds",
    "ClockPairing",
    "pair_clock_events",
    "split_overtime",
    "PayslipCalculator",
    "ContractPortion",
    "EmployeePayInputs",
    "ItemType",
    "LineCandidate",
    "PayslipCalculation",
]
