"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Shared
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    database: str
    open_payroll_runs: int | None = None


# ============================================================================
# Employee schemas
# ============================================================================


class EmploymentCreate(BaseModel):
    """Schema for recording a new employment contract."""

    start_date: date
    end_date: date | None = None
    base_salary: int = Field(ge=0, description="Monthly base salary in minor units")
    employment_type: str = Field(default="FULLTIME", pattern="^(FULLTIME|PARTTIME|CONTRACT)$")
    bank_account: str | None = None


class EmploymentChange(BaseModel):
    """Schema for a contract change. Omitted terms carry over."""

    effective_date: date
    base_salary: int | None = Field(default=None, ge=0)
    employment_type: str | None = Field(default=None, pattern="^(FULLTIME|PARTTIME|CONTRACT)$")
    bank_account: str | None = None


class EmploymentResponse(BaseModel):
    """Schema for employment response."""

    model_config = ConfigDict(from_attributes=True)

    employment_id: UUID
    employee_id: UUID
    employment_type: str
    base_salary: int
    pay_schedule: str
    bank_account: str | None = None
    start_date: date
    end_date: date | None = None


class RetireEmployeeRequest(BaseModel):
    """Schema for retiring an employee."""

    end_date: date


class EmployeeResponse(BaseModel):
    """Schema for employee response."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    company_id: UUID
    first_name: str
    last_name: str
    email: str
    role: str
    manager_employee_id: UUID | None = None
    start_date: date
    end_date: date | None = None


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveRequestCreate(BaseModel):
    """Schema for filing a leave request. Days are computed server-side."""

    employee_id: UUID
    leave_type_id: UUID
    start_date: date
    end_date: date
    reason: str | None = None
    draft: bool = Field(default=False, description="Store as DRAFT instead of submitting")


class LeaveDecision(BaseModel):
    """Schema for a reject decision."""

    reason: str | None = None


class LeaveRequestResponse(BaseModel):
    """Schema for leave request response."""

    model_config = ConfigDict(from_attributes=True)

    leave_request_id: UUID
    employee_id: UUID
    leave_type_id: UUID
    start_date: date
    end_date: date
    days: int
    reason: str | None = None
    status: str
    approver_employee_id: UUID | None = None
    decided_at: datetime | None = None
    decision_note: str | None = None
    canceled_by_employee_id: UUID | None = None
    canceled_at: datetime | None = None


class LeaveBalanceCreate(BaseModel):
    """Schema for provisioning a balance period."""

    employee_id: UUID
    leave_type_id: UUID
    period_start: date
    period_end: date
    days: int = Field(ge=0)


class LeaveBalanceResponse(BaseModel):
    """Schema for leave balance response."""

    model_config = ConfigDict(from_attributes=True)

    leave_balance_id: UUID
    employee_id: UUID
    leave_type_id: UUID
    period_start: date
    period_end: date
    balance_days: int
    version: int


class LeaveBalanceEntryResponse(BaseModel):
    """Schema for a balance history entry."""

    model_config = ConfigDict(from_attributes=True)

    leave_balance_entry_id: UUID
    delta_days: int
    resulting_days: int
    reason: str
    actor_employee_id: UUID | None = None
    leave_request_id: UUID | None = None
    recorded_at: datetime


# ============================================================================
# Attendance schemas
# ============================================================================


class ClockEventCreate(BaseModel):
    """Schema for recording a clock event."""

    employee_id: UUID
    event_type: str = Field(pattern="^(CLOCK_IN|CLOCK_OUT)$")
    timestamp: datetime
    notes: str | None = None
    source: str = "web"


class ClockEventResponse(BaseModel):
    """Schema for a recorded clock event."""

    model_config = ConfigDict(from_attributes=True)

    attendance_log_id: UUID
    employee_id: UUID
    event_time: datetime
    event_type: str
    notes: str | None = None
    source: str


class CloseDayRequest(BaseModel):
    """Schema for closing an employee's day."""

    employee_id: UUID
    work_date: date


class TimesheetResponse(BaseModel):
    """Schema for timesheet response."""

    model_config = ConfigDict(from_attributes=True)

    timesheet_id: UUID
    employee_id: UUID
    work_date: date
    work_hours: Decimal
    overtime_hours: Decimal
    status: str
    posted_at: datetime | None = None
    approved_by_employee_id: UUID | None = None
    approved_at: datetime | None = None


class CloseDayResponse(BaseModel):
    """Schema for close-day response."""

    timesheet: TimesheetResponse
    warnings: list[str] = []


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollRunCreate(BaseModel):
    """Schema for creating a payroll run."""

    company_id: UUID
    period: str = Field(description="YYYY-MM")


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_run_id: UUID
    company_id: UUID
    period: str
    status: str
    generation: int
    generated_at: datetime | None = None
    locked_at: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    payslip_id: UUID
    employee_id: UUID
    gross_pay: int
    deductions: int
    net_pay: int
    published_at: datetime | None = None
    paid_at: datetime | None = None


class PayrollItemResponse(BaseModel):
    """Schema for a payroll item."""

    model_config = ConfigDict(from_attributes=True)

    payroll_item_id: UUID
    employee_id: UUID
    name: str
    item_type: str
    amount: int
    quantity: Decimal | None = None
    explanation: str | None = None


class GenerationResponse(BaseModel):
    """Schema for generate response."""

    payroll_run: PayrollRunResponse
    generation: int
    payslip_count: int
    item_count: int
    total_gross: int
    total_net: int


class PayslipListResponse(BaseModel):
    """Schema for listing payslips of a run."""

    items: list[PayslipResponse]
    total: int
