from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.session import get_session
from app.models.audit_log import AuditLog

router = APIRouter(prefix="/audit", tags=["audit"])

AUDIT_PAGE_SIZE = 100


class AuditOut(BaseModel):
    id: int
    table_name: str
    record_id: int | None = None
    action: str
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    changed_at: datetime | None = None


@router.get("", response_model=list[AuditOut])
def list_audit(db: Session = Depends(get_session)) -> list[AuditOut]:
    rows = db.query(AuditLog).order_by(AuditLog.changed_at.desc(), AuditLog.id.desc()).limit(AUDIT_PAGE_SIZE).all()
    return [
        AuditOut(
            id=row.id,
            table_name=row.table_name,
            record_id=row.record_id,
            action=row.action,
            old_values=row.old_values,
            new_values=row.new_values,
            changed_at=row.changed_at,
        )
        for row in rows
    ]
