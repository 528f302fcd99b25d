"""Inscribo CRM backend entrypoint."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inscribo.app.api import (
    dashboard,
    leads,
    login,
    register,
    reports,
    settings as settings_api,
    stages,
    users,
    visits,
    webhooks,
)
from inscribo.app.core.dev_seed import ensure_demo_institution
from inscribo.app.core.errors import FunnelError
from inscribo.app.core.settings import get_settings
from inscribo.app.db.base import Base
from inscribo.app.db.session import SessionLocal, engine
from inscribo.app.services.store import TRANSIENT_STORE_ERRORS

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s",
)
logger = logging.getLogger("inscribo.main")

app = FastAPI(title=settings.app_name, version=settings.api_version)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FunnelError)
async def handle_funnel_error(request: Request, exc: FunnelError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def handle_store_unavailable(request: Request, exc: Exception):
    # Store failures outside a unit of work, typically on reads
    logger.warning("%s %s hit a store failure: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "The data store is temporarily unavailable; please try again"},
    )


for error_class in TRANSIENT_STORE_ERRORS:
    app.add_exception_handler(error_class, handle_store_unavailable)


app.include_router(register.router)
app.include_router(login.router)
app.include_router(stages.router)
app.include_router(leads.router)
app.include_router(visits.router)
app.include_router(reports.router)
app.include_router(dashboard.router)
app.include_router(settings_api.router)
app.include_router(users.router)
app.include_router(webhooks.router)


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def prepare_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_demo_institution(db)
    finally:
        db.close()
    logger.info("Inscribo started (environment=%s)", settings.environment)
