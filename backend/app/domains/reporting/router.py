from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import get_logger
from app.db.session import get_session
from app.domains.loans.service import balance_after_week
from app.domains.payroll.router import get_entry_or_404
from app.domains.payroll.service import compute_line, load_week_lines
from app.domains.weeks.router import get_week_or_404, to_out as week_out
from wagebook.aggregate import aggregate_week_totals
from wagebook.reports.exporter import weekly_csv
from wagebook.reports.payslip import PayslipContext, render_payslip_pdf

router = APIRouter(prefix="/reports", tags=["reporting"])
logger = get_logger(__name__)


@router.get("/weekly/{week_id}")
def weekly_totals(week_id: int, db: Session = Depends(get_session)) -> dict[str, Any]:
    week = get_week_or_404(db, week_id)
    totals = aggregate_week_totals(line.breakdown for line in load_week_lines(db, week_id))
    return {
        "week": week_out(week).model_dump(mode="json"),
        "totals": totals.as_dict(),
        "employee_count": totals.employee_count,
    }


@router.get("/weekly/{week_id}/export")
def export_weekly_csv(week_id: int, db: Session = Depends(get_session)) -> Response:
    week = get_week_or_404(db, week_id)
    lines = load_week_lines(db, week_id)
    body = weekly_csv(line.payslip_line() for line in lines)
    logger.info("weekly_export", week_id=week_id, rows=len(lines))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=payroll-{week.week_start.isoformat()}.csv"},
    )


@router.get("/payslip/{entry_id}")
def payslip_pdf(entry_id: int, db: Session = Depends(get_session)) -> Response:
    entry = get_entry_or_404(db, entry_id)
    line = compute_line(entry, entry.employee)
    week = entry.week
    context = PayslipContext(
        line=line.payslip_line(),
        week_start=week.week_start,
        week_end=week.week_end,
        company_name=settings.company_name,
        loan_balance=balance_after_week(db, entry.employee_id, week),
    )
    pdf = render_payslip_pdf(context)
    logger.info("payslip_rendered", entry_id=entry_id, size=len(pdf))
    filename = f"payslip-{line.employee.employee_code}-{week.week_start.isoformat()}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
