from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.audit import record_audit, snapshot
from app.core.logging import get_logger
from app.db.session import get_session
from app.models.employee import Employee

router = APIRouter(prefix="/employees", tags=["employees"])
logger = get_logger(__name__)


class EmployeeBase(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    daily_wage: float = Field(default=0, ge=0)
    overtime_rate: float = Field(default=0, ge=0)
    transport_rate: float = Field(default=0, ge=0)
    meal_rate: float = Field(default=0, ge=0)
    default_bonus: float = Field(default=0, ge=0)

    @field_validator("employee_code", "name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Must not be blank")
        return value


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    employee_code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    daily_wage: float | None = Field(default=None, ge=0)
    overtime_rate: float | None = Field(default=None, ge=0)
    transport_rate: float | None = Field(default=None, ge=0)
    meal_rate: float | None = Field(default=None, ge=0)
    default_bonus: float | None = Field(default=None, ge=0)
    is_active: bool | None = None


class EmployeeOut(EmployeeBase):
    id: int
    is_active: bool
    created_at: datetime | None = None


def to_out(row: Employee) -> EmployeeOut:
    return EmployeeOut(
        id=row.id,
        employee_code=row.employee_code,
        name=row.name,
        daily_wage=float(row.daily_wage or 0),
        overtime_rate=float(row.overtime_rate or 0),
        transport_rate=float(row.transport_rate or 0),
        meal_rate=float(row.meal_rate or 0),
        default_bonus=float(row.default_bonus or 0),
        is_active=bool(row.is_active),
        created_at=row.created_at,
    )


def get_employee_or_404(db: Session, employee_id: int) -> Employee:
    row = db.query(Employee).filter(Employee.id == employee_id).one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Employee not found")
    return row


def _code_taken(db: Session, code: str, exclude_id: int | None = None) -> bool:
    query = db.query(Employee).filter(func.lower(Employee.employee_code) == code.lower())
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    return db.query(query.exists()).scalar()


@router.get("", response_model=list[EmployeeOut])
def list_employees(db: Session = Depends(get_session)) -> list[EmployeeOut]:
    rows = (
        db.query(Employee)
        .filter(Employee.is_active.is_(True))
        .order_by(Employee.name.asc(), Employee.id.asc())
        .all()
    )
    return [to_out(row) for row in rows]


@router.get("/{employee_id}", response_model=EmployeeOut)
def get_employee(employee_id: int, db: Session = Depends(get_session)) -> EmployeeOut:
    return to_out(get_employee_or_404(db, employee_id))


@router.post("", response_model=EmployeeOut, status_code=201)
def create_employee(payload: EmployeeCreate, db: Session = Depends(get_session)) -> EmployeeOut:
    if _code_taken(db, payload.employee_code):
        raise HTTPException(status_code=400, detail="Employee code already exists")

    row = Employee(**payload.model_dump())
    db.add(row)
    db.flush()
    record_audit(db, "employees", row.id, "INSERT", None, snapshot(row))
    db.commit()
    db.refresh(row)

    logger.info("employee_created", employee_id=row.id, code=row.employee_code)
    return to_out(row)


@router.put("/{employee_id}", response_model=EmployeeOut)
def update_employee(employee_id: int, payload: EmployeeUpdate, db: Session = Depends(get_session)) -> EmployeeOut:
    row = get_employee_or_404(db, employee_id)
    changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    if "employee_code" in changes:
        changes["employee_code"] = changes["employee_code"].strip()
        if _code_taken(db, changes["employee_code"], exclude_id=row.id):
            raise HTTPException(status_code=400, detail="Employee code already exists")
    if "name" in changes:
        changes["name"] = changes["name"].strip()

    before = snapshot(row)
    for key, value in changes.items():
        setattr(row, key, value)
    db.flush()
    record_audit(db, "employees", row.id, "UPDATE", before, snapshot(row))
    db.commit()
    db.refresh(row)

    logger.info("employee_updated", employee_id=row.id, fields=sorted(changes))
    return to_out(row)


@router.delete("/{employee_id}", status_code=204)
def deactivate_employee(employee_id: int, db: Session = Depends(get_session)) -> None:
    row = get_employee_or_404(db, employee_id)
    before = snapshot(row)
    row.is_active = False
    db.flush()
    record_audit(db, "employees", row.id, "DELETE", before, snapshot(row))
    db.commit()
    logger.info("employee_deactivated", employee_id=employee_id)
    return None
