# kpi_service/main.py
import logging
from fastapi import FastAPI
from sqlalchemy import exc as sa_exc
from kpi_service.config import settings
from kpi_service.database import engine, Base
from kpi_service.models.user import User
from kpi_service.models.attendance import Attendance, Duty
from kpi_service.models.task import Task
from kpi_service.models.goal import IndividualGoal
from kpi_service.models.kpi import KpiConfig, KpiCriterion, KpiRecord, RewardTransaction
from kpi_service.routers import kpi_config, criteria, goal, stats, grade, review

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="KPI Grading Service", version="1.0")

# Include Routers
app.include_router(kpi_config.router)
app.include_router(criteria.router)
app.include_router(goal.router)
app.include_router(stats.router)
app.include_router(grade.router)
app.include_router(review.router)

# Create DB Tables (for local runs only — use Alembic in prod)
@app.on_event("startup")
async def startup_event():
    # ignore duplicate-object errors from previous partial runs
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logging.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to the KPI Grading Service"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kpi_service.main:app", host="0.0.0.0", port=8000, reload=True)
