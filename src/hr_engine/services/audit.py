"""Audit trail recording shared by the workflow services."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine.models import AuditEvent


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, date, datetime)):
        return str(value)
    return value


async def record_audit(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    action: str,
    actor_id: UUID | None = None,
    details: dict[str, Any] | None = None,
) -> AuditEvent:
    """Add an audit event to the current unit of work."""
    event = AuditEvent(
        actor_employee_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        details_json={k: _jsonable(v) for k, v in details.items()} if details else None,
    )
    session.add(event)
    return event
