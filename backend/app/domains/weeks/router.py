from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, model_validator
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import get_logger
from app.db.session import get_session
from app.models.payroll_week import PayrollWeek
from wagebook.weeks import is_week_start, recent_weeks, week_label

router = APIRouter(prefix="/weeks", tags=["weeks"])
logger = get_logger(__name__)


class WeekCreate(BaseModel):
    week_start: date
    week_end: date | None = None
    week_label: str | None = None

    @model_validator(mode="after")
    def check_range(self) -> "WeekCreate":
        if not is_week_start(self.week_start):
            raise ValueError("week_start must be a Sunday")
        expected_end = self.week_start + timedelta(days=6)
        if self.week_end is None:
            self.week_end = expected_end
        elif self.week_end != expected_end:
            raise ValueError("week_end must be the Saturday six days after week_start")
        return self


class WeekOut(BaseModel):
    id: int
    week_start: date
    week_end: date
    week_label: str | None = None


class WeekOptionOut(BaseModel):
    start: date
    end: date
    label: str
    range: str


def to_out(row: PayrollWeek) -> WeekOut:
    return WeekOut(id=row.id, week_start=row.week_start, week_end=row.week_end, week_label=row.week_label)


def get_week_or_404(db: Session, week_id: int) -> PayrollWeek:
    row = db.query(PayrollWeek).filter(PayrollWeek.id == week_id).one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Payroll week not found")
    return row


@router.get("", response_model=list[WeekOut])
def list_weeks(db: Session = Depends(get_session)) -> list[WeekOut]:
    rows = db.query(PayrollWeek).order_by(PayrollWeek.week_start.desc()).limit(settings.weeks_listed).all()
    return [to_out(row) for row in rows]


@router.get("/recent", response_model=list[WeekOptionOut])
def list_recent_week_options() -> list[WeekOptionOut]:
    return [
        WeekOptionOut(start=option.start, end=option.end, label=option.label, range=option.range_label)
        for option in recent_weeks(settings.recent_week_options)
    ]


@router.get("/{week_id}", response_model=WeekOut)
def get_week(week_id: int, db: Session = Depends(get_session)) -> WeekOut:
    return to_out(get_week_or_404(db, week_id))


@router.post("", response_model=WeekOut)
def get_or_create_week(payload: WeekCreate, db: Session = Depends(get_session)) -> WeekOut:
    row = (
        db.query(PayrollWeek)
        .filter(PayrollWeek.week_start == payload.week_start, PayrollWeek.week_end == payload.week_end)
        .one_or_none()
    )
    if row is None:
        row = PayrollWeek(
            week_start=payload.week_start,
            week_end=payload.week_end,
            week_label=payload.week_label or week_label(payload.week_start),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("payroll_week_created", week_id=row.id, week_start=str(row.week_start))
    return to_out(row)
