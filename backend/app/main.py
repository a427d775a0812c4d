from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import health
from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.monitoring import configure_error_monitoring
from app.core.observability import configure_observability
from app.domains.admin.router import router as admin_router
from app.domains.audit.router import router as audit_router
from app.domains.employees.router import router as employee_router
from app.domains.loans.router import router as loans_router
from app.domains.payroll.router import router as payroll_router
from app.domains.reporting.router import router as reporting_router
from app.domains.weeks.router import router as weeks_router

configure_logging(settings.log_level)
configure_observability()
configure_error_monitoring()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("startup_complete", env=settings.env, company=settings.company_name)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.cors_origins] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(employee_router)
app.include_router(weeks_router)
app.include_router(payroll_router)
app.include_router(loans_router)
app.include_router(reporting_router)
app.include_router(audit_router)
app.include_router(admin_router)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Weekly payroll API running", "environment": settings.env}
