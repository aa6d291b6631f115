from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import logging
import pytz
from schoolms.routers import (
    auth,
    users,
    roles,
    students,
    teachers,
    parents,
    subjects,
    exams,
    fees,
    expenses,
    library,
    attendance,
    homework,
    messages,
    chat,
    calendar,
    reports,
    activity,
    settings,
    portal,
    notices,
    admissions,
)
from schoolms.services.fees import scheduled_fee_job
from schoolms.core.config import settings as app_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

timezone = pytz.timezone(app_settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=timezone)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    logger.info("Starting School Portal API...")

    if app_settings.FEE_SCHEDULER_ENABLED:
        logger.info(
            f"Fee scheduler enabled - invoices and overdue checks run daily at "
            f"{app_settings.FEE_SCHEDULER_HOUR}:00 ({app_settings.TIMEZONE})"
        )

        scheduler.add_job(
            scheduled_fee_job,
            trigger=CronTrigger(
                hour=app_settings.FEE_SCHEDULER_HOUR,
                minute=0,
                timezone=timezone,
            ),
            id="daily_fee_job",
            name="Monthly invoices and overdue marking",
            replace_existing=True,
        )
        scheduler.start()

        next_run = scheduler.get_job("daily_fee_job").next_run_time
        logger.info(f"Next fee job scheduled for: {next_run}")
    else:
        logger.info("Fee scheduler is disabled in configuration")

    yield

    logger.info("Shutting down School Portal API...")
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Fee scheduler stopped")


app = FastAPI(
    title="School Portal API",
    description=f"Management system for {app_settings.SCHOOL_NAME}",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint with scheduler status"""
    next_fee_job = None
    if scheduler.running:
        job = scheduler.get_job("daily_fee_job")
        if job and job.next_run_time:
            next_fee_job = job.next_run_time.isoformat()

    return {
        "status": "ok",
        "service": "school-portal",
        "scheduler": "running" if scheduler.running else "stopped",
        "fee_scheduler_enabled": app_settings.FEE_SCHEDULER_ENABLED,
        "next_fee_job": next_fee_job,
        "timezone": app_settings.TIMEZONE,
    }


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(roles.router)
app.include_router(students.router)
app.include_router(teachers.router)
app.include_router(parents.router)
app.include_router(subjects.router)
app.include_router(exams.router)
app.include_router(fees.router)
app.include_router(expenses.router)
app.include_router(library.router)
app.include_router(attendance.router)
app.include_router(homework.router)
app.include_router(messages.router)
app.include_router(chat.router)
app.include_router(calendar.router)
app.include_router(reports.router)
app.include_router(activity.router)
app.include_router(settings.router)
app.include_router(portal.router)
app.include_router(notices.router)
app.include_router(admissions.router)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8008, reload=True)
