"""
FastAPI app entrypoint.

Beacon push pipeline: change-event webhooks fan out pushes; a background job reconciles receipts.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from beacon_push.api.routes import beacon_events, push
from beacon_push.core.constants import RECEIPT_JOB_ID
from beacon_push.core.push_config import PushPipelineConfig, get_push_config
from beacon_push.scheduler.receipt_job import run_receipt_check_job

logger = logging.getLogger(__name__)

# Scheduler: Expo receipt check every receipt_interval_minutes (PUSH_RECEIPT_INTERVAL_MINUTES)
_scheduler = BackgroundScheduler()


def add_receipt_job(scheduler, config: PushPipelineConfig) -> None:
    scheduler.add_job(
        run_receipt_check_job,
        "interval",
        minutes=config.receipt_interval_minutes,
        id=RECEIPT_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_push_config()
    add_receipt_job(_scheduler, config)
    _scheduler.start()
    app.state.scheduler = _scheduler
    logger.info("Beacon push ready; receipt check every %s min", config.receipt_interval_minutes)
    yield
    _scheduler.shutdown(wait=False)


app = FastAPI(title="Beacon Push", version="0.1.0", lifespan=lifespan)

# CORS: optional CORS_ORIGINS env (comma-separated); webhooks are server-to-server so none by default
_cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(beacon_events.router, tags=["beacon-events"])
app.include_router(push.router, tags=["push"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Beacon Push API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
