from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.db.session import get_session
from app.models import AuditLog, Employee, Loan, LoanPayment, PayrollEntry, PayrollWeek

router = APIRouter(prefix="/admin", tags=["admin"])
logger = get_logger(__name__)

# Children before parents
RESET_ORDER = (LoanPayment, Loan, PayrollEntry, PayrollWeek, Employee, AuditLog)


@router.delete("/reset")
def reset_all_data(db: Session = Depends(get_session)) -> dict[str, object]:
    """Delete every row in every table, including the loan payment ledger."""
    deleted = {}
    for model in RESET_ORDER:
        deleted[model.__tablename__] = db.query(model).delete(synchronize_session=False)
    db.commit()
    logger.warning("all_data_reset", deleted=deleted)
    return {"message": "All data deleted successfully", "deleted": deleted}
