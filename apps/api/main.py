from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from apps.api.dependencies import default_store
from apps.api.observability import init_observability
from apps.api.reminders_scheduler import start_scheduler, stop_scheduler
from apps.api.routes.notes import router as notes_router
from apps.api.routes.reminders import router as reminders_router
from packages.core.logging_config import configure_logging


configure_logging()

init_observability()
app = FastAPI(title="MyNote API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
FastAPIInstrumentor.instrument_app(app)
app.include_router(notes_router)
app.include_router(reminders_router)


def _scheduler_enabled() -> bool:
    return os.getenv("REMINDERS_SCHEDULER_ENABLED", "true").lower() == "true"


@app.on_event("startup")
def _start_reminder_scheduler() -> None:
    if not _scheduler_enabled():
        return
    start_scheduler(default_store())


@app.on_event("shutdown")
def _stop_reminder_scheduler() -> None:
    stop_scheduler()
