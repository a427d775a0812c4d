from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..weeks import DAY_NAMES, format_day
from .exporter import PayslipLine

DEFAULT_COMPANY_NAME = "Wagebook Payroll"


@dataclass(frozen=True)
class PayslipContext:
    line: PayslipLine
    week_start: date
    week_end: date
    company_name: str = DEFAULT_COMPANY_NAME
    loan_balance: Optional[Decimal] = None


def money(value: Any) -> str:
    if value is None:
        return "-"
    amount = int(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}{abs(amount):,}"


def _table_style(total_rows: int = 1) -> TableStyle:
    return TableStyle(
        [
            ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (0, -total_rows), (-1, -1), "Helvetica-Bold"),
            ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ("LINEABOVE", (0, -total_rows), (-1, -total_rows), 0.75, colors.black),
            ("LEFTPADDING", (0, 0), (-1, -1), 4),
            ("RIGHTPADDING", (0, 0), (-1, -1), 4),
            ("TOPPADDING", (0, 0), (-1, -1), 2),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ]
    )


def build_payslip_story(context: PayslipContext) -> List[Any]:
    styles = getSampleStyleSheet()
    header_style = ParagraphStyle("slip_header", parent=styles["Heading4"], fontSize=10)
    body_style = ParagraphStyle("slip_body", parent=styles["Normal"], fontSize=8.5)

    line = context.line
    calc = line.breakdown
    story: List[Any] = [
        Paragraph(f"<b>{context.company_name}</b>", styles["Title"]),
        Paragraph("WEEKLY PAYSLIP", header_style),
        Paragraph(
            f"{line.employee_name} ({line.employee_code})<br/>"
            f"Week: {format_day(context.week_start)} - {format_day(context.week_end)}<br/>"
            f"Days present: {line.entry.days_present}",
            body_style,
        ),
        HRFlowable(width="100%"),
        Spacer(1, 6),
    ]

    earnings = [["Earnings", "Amount"]]
    earnings.extend([item.label, money(item.amount)] for item in calc.items())
    earnings.append(["Gross earnings", money(calc.gross_earnings)])
    earnings_table = Table(earnings, colWidths=[2.6 * inch, 1.6 * inch])
    earnings_table.setStyle(_table_style())
    story.append(earnings_table)
    story.append(Spacer(1, 8))

    overtime_days = [
        [DAY_NAMES[index], f"{hours.normalize():f}"]
        for index, hours in enumerate(line.entry.overtime_hours)
        if hours
    ]
    if overtime_days:
        story.append(Paragraph("Overtime hours", header_style))
        overtime_table = Table(
            [["Day", "Hours"], *overtime_days, ["Total", f"{calc.overtime_hours.normalize():f}"]],
            colWidths=[2.6 * inch, 1.6 * inch],
        )
        overtime_table.setStyle(_table_style())
        story.append(overtime_table)
        story.append(Spacer(1, 8))

    summary = [
        ["Summary", "Amount"],
        ["Gross earnings", money(calc.gross_earnings)],
        ["Loan deduction", money(calc.loan_deduction)],
        ["Net pay", money(calc.net_pay)],
    ]
    if context.loan_balance is not None:
        summary.insert(3, ["Loan balance after deduction", money(context.loan_balance)])
    summary_table = Table(summary, colWidths=[2.6 * inch, 1.6 * inch])
    summary_table.setStyle(_table_style())
    story.append(summary_table)
    return story


def render_payslip_pdf(context: PayslipContext) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A5,
        leftMargin=0.4 * inch,
        rightMargin=0.4 * inch,
        topMargin=0.4 * inch,
        bottomMargin=0.4 * inch,
        title=f"Payslip {context.line.employee_code} {context.week_start.isoformat()}",
    )
    doc.build(build_payslip_story(context))
    return buffer.getvalue()
