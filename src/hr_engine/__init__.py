"""HR engine: leave balances, leave requests, attendance and monthly payroll."""

__version__ = "0.1.0"
