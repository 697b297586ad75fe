import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beaware.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(message)s"
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "beaware-backend"
SERVICE_VERSION = "1.0.0"

app = FastAPI(
    title="BeAware Scam Registry API",
    version=SERVICE_VERSION,
)

from beaware.middleware.request_logging import RequestLoggingMiddleware
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


from beaware.db import Base, engine

from beaware.routes.auth import router as auth_router
from beaware.routes.scam_reports import router as scam_reports_router
from beaware.routes.consolidated_scams import router as consolidated_scams_router
from beaware.routes.scam_lookup import router as scam_lookup_router
from beaware.routes.api_configs import router as api_configs_router
from beaware.routes.security_checklist import router as security_checklist_router


app.include_router(auth_router)
app.include_router(scam_reports_router)
app.include_router(consolidated_scams_router)
app.include_router(scam_lookup_router)
app.include_router(api_configs_router)
app.include_router(security_checklist_router)


@app.on_event("startup")
def startup():
    logger.info("BeAware API starting up")

    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

    logger.info("Startup completed")


@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }
