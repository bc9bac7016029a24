"""
Gestionnaires d'erreurs de l'API
Principe KISS : chaque erreur devient une réponse JSON au format unique
"""
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ProvisionerError,
    RegistryError,
    ValidationError,
)

logger = logging.getLogger("provisioner.error")

STATUS_BY_ERROR = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 500,
    RegistryError: 500,
    ConfigurationError: 500,
}


def _error_body(error: str, message: str, details=None) -> dict:
    return {
        "success": False,
        "error": error,
        "message": message,
        "details": details,
    }


def status_for(exc: ProvisionerError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


async def provisioner_exception_handler(request: Request, exc: ProvisionerError):
    status_code = status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "provisioner_error",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "method": request.method,
                "status_code": status_code,
                "error": exc.error_code,
                "step": exc.step,
                "submitted": exc.submitted,
                "message": exc.message,
            }
        },
    )
    details = None
    if exc.step:
        details = {"step": exc.step, "submitted": exc.submitted}
    return JSONResponse(status_code=status_code, content=_error_body(exc.error_code, str(exc), details))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Corps de requête mal formé : 400, aucun effet de bord."""
    return JSONResponse(
        status_code=400,
        content=_error_body("validation_error", "Invalid request body", jsonable_errors(exc)),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


async def global_exception_handler(request: Request, exc: Exception):
    """
    Gestionnaire global d'exceptions qui retourne toujours du JSON valide
    """
    logger.exception(
        "unhandled_exception",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "method": request.method,
                "request_id": getattr(request.state, "request_id", None),
            }
        },
    )

    if isinstance(exc, SQLAlchemyError):
        return JSONResponse(
            status_code=500,
            content=_error_body("database_error", "Database error, check that the health database is reachable"),
        )

    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "Internal server error", "See the logs for details"),
    )
