"""
Application principale du provisioner
Principe KISS : configuration simple et routage centralisé
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .logging_config import setup_logging, set_request_id, reset_request_id
from .database import Base, engine
from .error_handlers import (
    global_exception_handler,
    provisioner_exception_handler,
    request_validation_handler,
)
from .errors import ProvisionerError
from . import models  # noqa: F401  enregistre les tables avant create_all
from .routers import deployments_router, app_health_router, probes_router

setup_logging()
logger = logging.getLogger("provisioner.main")
access_logger = logging.getLogger("provisioner.access")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # La base de santé est indépendante : son absence ne bloque pas le provisioning
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.warning("health_database_unavailable", extra={"extra_fields": {"error": str(e)}})
    yield


# Créer l'application FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    debug=settings.DEBUG_MODE,
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every incoming HTTP request with structured metadata."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = set_request_id(request_id)
    start_time = time.perf_counter()
    client_host = getattr(request.client, "host", None)

    try:
        response = await call_next(request)
    except Exception as exc:
        duration_ms = round((time.perf_counter() - start_time) * 1000, 3)
        access_logger.error(
            "request_failed",
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "query": request.url.query,
                    "status_code": getattr(exc, "status_code", 500),
                    "duration_ms": duration_ms,
                    "client_ip": client_host,
                    "user_agent": request.headers.get("user-agent"),
                    "error": str(exc),
                    "success": False,
                }
            },
        )
        reset_request_id(token)
        raise

    duration_ms = round((time.perf_counter() - start_time) * 1000, 3)
    access_logger.info(
        "request_completed",
        extra={
            "extra_fields": {
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": client_host,
                "user_agent": request.headers.get("user-agent"),
                "content_length": response.headers.get("content-length"),
                "success": response.status_code < 400,
            }
        },
    )

    response.headers["X-Request-ID"] = request_id
    reset_request_id(token)
    return response


# Gestionnaires d'erreurs
app.add_exception_handler(ProvisionerError, provisioner_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, global_exception_handler)

# ============= INCLUSION DES ROUTEURS =============

app.include_router(deployments_router)
app.include_router(app_health_router)
app.include_router(probes_router)


@app.get("/")
async def read_root():
    """Endpoint racine - Message de bienvenue"""
    return {"message": "Provisioner API", "version": app.version}


# ============= POINT D'ENTRÉE =============

def main():
    """Point d'entrée pour lancer l'API"""
    uvicorn.run(
        "provisioner.main:app",
        host="0.0.0.0",
        port=settings.API_PORT,
        reload=settings.DEBUG_MODE,
    )


if __name__ == "__main__":
    main()
