"""Leave request workflow - lifecycle of a single leave request."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine.calculators.business_days import count_business_days
from hr_engine.models import Employee, LeaveRequest, LeaveType
from hr_engine.models.base import utcnow
from hr_engine.services.audit import record_audit
from hr_engine.services.collaborators import (
    ApprovalAuthority,
    DatabaseHolidayCalendar,
    HolidayCalendar,
    RoleApprovalAuthority,
)
from hr_engine.services.errors import (
    InvalidRangeError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    OverlapError,
    ValidationError,
)
from hr_engine.services.ledger_service import BalanceLedger
from hr_engine.services.state_machine import LeaveRequestStateMachine, LeaveRequestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveRequestInput:
    """Client-supplied fields of a leave request. ``days`` is never taken from input."""

    employee_id: UUID
    leave_type_id: UUID
    start_date: date
    end_date: date
    reason: str | None = None


class LeaveRequestWorkflow:
    """Service for managing the leave request lifecycle.

    Operations:
    - create_draft: Store a priced request in DRAFT
    - submit / submit_draft: Validate, recompute days and move to PENDING
    - approve: Debit the covering balance and move to APPROVED
    - reject: Move PENDING to REJECTED, no ledger effect
    - cancel: Withdraw a PENDING request, or reverse an APPROVED one

    Ledger-touching transitions debit first and flip the status second, both
    inside the caller's transaction; a failed debit leaves the request as it
    was.
    """

    def __init__(
        self,
        session: AsyncSession,
        authority: ApprovalAuthority | None = None,
        calendar: HolidayCalendar | None = None,
        ledger: BalanceLedger | None = None,
    ):
        self.session = session
        self.authority = authority or RoleApprovalAuthority(session)
        self.calendar = calendar or DatabaseHolidayCalendar(session)
        self.ledger = ledger or BalanceLedger(session)

    async def get_request(self, request_id: UUID) -> LeaveRequest:
        """Load a leave request or raise NotFoundError."""
        request = await self.session.get(LeaveRequest, request_id)
        if request is None:
            raise NotFoundError("LeaveRequest", request_id)
        return request

    async def create_draft(self, payload: LeaveRequestInput) -> LeaveRequest:
        """Store a new request in DRAFT with server-computed days."""
        days = await self._price(payload)
        request = LeaveRequest(
            employee_id=payload.employee_id,
            leave_type_id=payload.leave_type_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days=days,
            reason=payload.reason,
            status=LeaveRequestStatus.DRAFT.value,
        )
        self.session.add(request)
        await self.session.flush()

        await self._record(request, "created", payload.employee_id, {"days": days})
        return request

    async def submit(self, payload: LeaveRequestInput) -> LeaveRequest:
        """Create a request directly in PENDING.

        Raises:
            InvalidRangeError: If end_date is before start_date
            ValidationError: If the leave type is foreign or the range has no business days
            OverlapError: If a pending or approved request of the employee overlaps
        """
        days = await self._price(payload)
        await self._check_overlap(payload.employee_id, payload.start_date, payload.end_date)

        request = LeaveRequest(
            employee_id=payload.employee_id,
            leave_type_id=payload.leave_type_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days=days,
            reason=payload.reason,
            status=LeaveRequestStatus.PENDING.value,
        )
        self.session.add(request)
        await self.session.flush()

        await self._record(request, "submitted", payload.employee_id, {"days": days})
        logger.info(
            "Leave request %s submitted for employee %s (%s day(s))",
            request.leave_request_id,
            request.employee_id,
            days,
        )
        return request

    async def submit_draft(self, request_id: UUID, actor_id: UUID | None = None) -> LeaveRequest:
        """Move a stored DRAFT to PENDING, re-pricing it against today's calendar."""
        request = await self.get_request(request_id)
        LeaveRequestStateMachine.validate_transition(request.status, LeaveRequestStatus.PENDING)
        if actor_id is not None and actor_id != request.employee_id:
            await self._require_authority(actor_id, request.employee_id)

        payload = LeaveRequestInput(
            employee_id=request.employee_id,
            leave_type_id=request.leave_type_id,
            start_date=request.start_date,
            end_date=request.end_date,
            reason=request.reason,
        )
        days = await self._price(payload)
        await self._check_overlap(request.employee_id, request.start_date, request.end_date)

        await self._transition(request, LeaveRequestStatus.PENDING, days=days)
        await self._record(request, "submitted", actor_id or request.employee_id, {"days": days})
        return request

    async def approve(self, request_id: UUID, approver_id: UUID) -> LeaveRequest:
        """Approve a PENDING request and debit the covering balance.

        Raises:
            InvalidTransitionError: If the request is not PENDING
            NotAuthorizedError: If the approver has no authority over the requester
            NotFoundError: If no balance period covers the request
            InsufficientBalanceError: If the balance cannot cover the days
        """
        request = await self.get_request(request_id)
        LeaveRequestStateMachine.validate_transition(request.status, LeaveRequestStatus.APPROVED)
        await self._require_authority(approver_id, request.employee_id)

        balance = await self.ledger.find_balance(
            request.employee_id, request.leave_type_id, request.start_date
        )
        if balance is None:
            raise NotFoundError(
                "LeaveBalance",
                f"(employee={request.employee_id}, leave_type={request.leave_type_id}, "
                f"covering {request.start_date})",
            )
        if not balance.covers(request.start_date, request.end_date):
            raise ValidationError(
                "Leave request spans more than one balance period",
                leave_request_id=request.leave_request_id,
            )

        await self.ledger.debit(
            request.employee_id,
            request.leave_type_id,
            (balance.period_start, balance.period_end),
            request.days,
            actor_id=approver_id,
            leave_request_id=request.leave_request_id,
            reason="leave_approved",
        )
        await self._transition(
            request,
            LeaveRequestStatus.APPROVED,
            approver_employee_id=approver_id,
            decided_at=utcnow(),
            debited_balance_id=balance.leave_balance_id,
        )

        await self._record(request, "approved", approver_id, {"days": request.days})
        logger.info("Leave request %s approved by %s", request.leave_request_id, approver_id)
        return request

    async def reject(
        self,
        request_id: UUID,
        approver_id: UUID,
        reason: str | None = None,
    ) -> LeaveRequest:
        """Reject a PENDING request. No ledger effect."""
        request = await self.get_request(request_id)
        LeaveRequestStateMachine.validate_transition(request.status, LeaveRequestStatus.REJECTED)
        await self._require_authority(approver_id, request.employee_id)

        await self._transition(
            request,
            LeaveRequestStatus.REJECTED,
            approver_employee_id=approver_id,
            decided_at=utcnow(),
            decision_note=reason,
        )

        await self._record(request, "rejected", approver_id, {"reason": reason} if reason else None)
        logger.info("Leave request %s rejected by %s", request.leave_request_id, approver_id)
        return request

    async def cancel(self, request_id: UUID, actor_id: UUID) -> LeaveRequest:
        """Cancel a request.

        PENDING requests may only be withdrawn by the requester. APPROVED
        requests are reversed administratively by someone with authority, and
        the debited days are credited back to the same balance row.

        Raises:
            InvalidTransitionError: From DRAFT or any terminal state
            NotAuthorizedError: If the actor may not cancel this request
        """
        request = await self.get_request(request_id)
        from_status = request.status
        LeaveRequestStateMachine.validate_transition(from_status, LeaveRequestStatus.CANCELED)

        if LeaveRequestStateMachine.is_reversal(from_status, LeaveRequestStatus.CANCELED):
            await self._require_authority(actor_id, request.employee_id)
            if request.debited_balance_id is None:
                raise InvalidTransitionError(
                    from_status,
                    LeaveRequestStatus.CANCELED.value,
                    "Approved request has no recorded debit",
                )
            await self.ledger.credit_balance(
                request.debited_balance_id,
                request.days,
                actor_id=actor_id,
                leave_request_id=request.leave_request_id,
                reason="leave_canceled",
            )
        elif actor_id != request.employee_id:
            raise NotAuthorizedError(
                "Only the requester can withdraw a pending leave request",
                actor_id=actor_id,
                leave_request_id=request.leave_request_id,
            )

        await self._transition(
            request,
            LeaveRequestStatus.CANCELED,
            canceled_by_employee_id=actor_id,
            canceled_at=utcnow(),
        )

        await self._record(request, "canceled", actor_id, {"from_status": from_status})
        logger.info(
            "Leave request %s canceled from %s by %s",
            request.leave_request_id,
            from_status,
            actor_id,
        )
        return request

    async def _price(self, payload: LeaveRequestInput) -> int:
        """Validate a request and return its business-day count."""
        if payload.end_date < payload.start_date:
            raise InvalidRangeError(payload.start_date, payload.end_date)

        employee = await self.session.get(Employee, payload.employee_id)
        if employee is None:
            raise NotFoundError("Employee", payload.employee_id)
        leave_type = await self.session.get(LeaveType, payload.leave_type_id)
        if leave_type is None:
            raise NotFoundError("LeaveType", payload.leave_type_id)
        if leave_type.company_id != employee.company_id:
            raise ValidationError(
                "Leave type does not belong to the employee's company",
                leave_type_id=payload.leave_type_id,
            )
        if employee.end_date is not None and employee.end_date < payload.start_date:
            raise ValidationError("Employee is retired before the requested range")

        days = await count_business_days(
            payload.start_date, payload.end_date, employee.company_id, self.calendar
        )
        if days == 0:
            raise ValidationError("Requested range contains no business days")
        return days

    async def _check_overlap(self, employee_id: UUID, start: date, end: date) -> None:
        result = await self.session.execute(
            select(LeaveRequest.leave_request_id).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status.in_([s.value for s in LeaveRequestStateMachine.ACTIVE]),
                LeaveRequest.start_date <= end,
                LeaveRequest.end_date >= start,
            )
        )
        clash = result.scalars().first()
        if clash is not None:
            raise OverlapError(
                f"Leave request overlaps existing request {clash}",
                leave_request_id=clash,
            )

    async def _require_authority(self, actor_id: UUID, employee_id: UUID) -> None:
        if not await self.authority.has_approval_authority(actor_id, employee_id):
            raise NotAuthorizedError(
                f"Employee {actor_id} has no approval authority over {employee_id}",
                actor_id=actor_id,
                employee_id=employee_id,
            )

    async def _transition(
        self,
        request: LeaveRequest,
        to_status: LeaveRequestStatus,
        **values: Any,
    ) -> None:
        """Move the request out of its observed status with a conditional update.

        Zero affected rows means another transaction moved it first.
        """
        from_status = request.status
        result = await self.session.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.leave_request_id == request.leave_request_id,
                LeaveRequest.status == from_status,
            )
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(request)
        if result.rowcount == 0:
            raise InvalidTransitionError(
                request.status,
                to_status.value,
                f"Status changed concurrently (expected '{from_status}')",
            )

    async def _record(
        self,
        request: LeaveRequest,
        action: str,
        actor_id: UUID | None,
        details: dict | None = None,
    ) -> None:
        await record_audit(
            self.session,
            entity_type="leave_request",
            entity_id=request.leave_request_id,
            action=action,
            actor_id=actor_id,
            details=details,
        )
