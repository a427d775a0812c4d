"""create weekly payroll tables

Revision ID: 0001
Revises: None
Create Date: 2024-05-05
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(precision=14, scale=2)


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("daily_wage", MONEY, nullable=False, server_default="0"),
        sa.Column("overtime_rate", MONEY, nullable=False, server_default="0"),
        sa.Column("transport_rate", MONEY, nullable=False, server_default="0"),
        sa.Column("meal_rate", MONEY, nullable=False, server_default="0"),
        sa.Column("default_bonus", MONEY, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_code"),
    )
    op.create_index(op.f("ix_employees_id"), "employees", ["id"], unique=False)

    op.create_table(
        "payroll_weeks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("week_end", sa.Date(), nullable=False),
        sa.Column("week_label", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("week_start", "week_end", name="uq_payroll_week_range"),
    )
    op.create_index(op.f("ix_payroll_weeks_id"), "payroll_weeks", ["id"], unique=False)

    op.create_table(
        "payroll_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("week_id", sa.Integer(), nullable=False),
        sa.Column("days_present", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("overtime_hours", sa.JSON(), nullable=False),
        sa.Column("bonus", MONEY, nullable=False, server_default="0"),
        sa.Column("additions", sa.JSON(), nullable=False),
        sa.Column("loan_deduction", MONEY, nullable=False, server_default="0"),
        sa.Column("override_daily_wage", MONEY, nullable=True),
        sa.Column("override_overtime_rate", MONEY, nullable=True),
        sa.Column("override_transport_rate", MONEY, nullable=True),
        sa.Column("override_meal_rate", MONEY, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["week_id"], ["payroll_weeks.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "week_id", name="uq_payroll_entry_employee_week"),
    )
    op.create_index(op.f("ix_payroll_entries_id"), "payroll_entries", ["id"], unique=False)
    op.create_index(op.f("ix_payroll_entries_employee_id"), "payroll_entries", ["employee_id"], unique=False)
    op.create_index(op.f("ix_payroll_entries_week_id"), "payroll_entries", ["week_id"], unique=False)

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("loan_code", sa.String(length=50), nullable=True),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("principal", MONEY, nullable=False),
        sa.Column("remaining", MONEY, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("remaining >= 0 AND remaining <= principal", name="ck_loans_remaining_bounds"),
    )
    op.create_index(op.f("ix_loans_id"), "loans", ["id"], unique=False)
    op.create_index(op.f("ix_loans_employee_id"), "loans", ["employee_id"], unique=False)

    op.create_table(
        "loan_payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("loan_id", sa.Integer(), nullable=False),
        sa.Column("week_id", sa.Integer(), nullable=True),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("balance_after", MONEY, nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["loan_id"], ["loans.id"]),
        sa.ForeignKeyConstraint(["week_id"], ["payroll_weeks.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_loan_payments_id"), "loan_payments", ["id"], unique=False)
    op.create_index(op.f("ix_loan_payments_loan_id"), "loan_payments", ["loan_id"], unique=False)

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("table_name", sa.String(length=50), nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("changed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_log_id"), "audit_log", ["id"], unique=False)
    op.create_index(op.f("ix_audit_log_changed_at"), "audit_log", ["changed_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_log_changed_at"), table_name="audit_log")
    op.drop_index(op.f("ix_audit_log_id"), table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index(op.f("ix_loan_payments_loan_id"), table_name="loan_payments")
    op.drop_index(op.f("ix_loan_payments_id"), table_name="loan_payments")
    op.drop_table("loan_payments")
    op.drop_index(op.f("ix_loans_employee_id"), table_name="loans")
    op.drop_index(op.f("ix_loans_id"), table_name="loans")
    op.drop_table("loans")
    op.drop_index(op.f("ix_payroll_entries_week_id"), table_name="payroll_entries")
    op.drop_index(op.f("ix_payroll_entries_employee_id"), table_name="payroll_entries")
    op.drop_index(op.f("ix_payroll_entries_id"), table_name="payroll_entries")
    op.drop_table("payroll_entries")
    op.drop_index(op.f("ix_payroll_weeks_id"), table_name="payroll_weeks")
    op.drop_table("payroll_weeks")
    op.drop_index(op.f("ix_employees_id"), table_name="employees")
    op.drop_table("employees")
