"""Sondes liveness / readiness / startup."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_registry
from ..errors import RegistryError
from ..registry import RegistryClient, ResourceKind

router = APIRouter(tags=["probes"])


@router.get("/healthz")
def healthz():
    return {"status": "ok"}


@router.get("/startup")
def startup():
    return {"status": "started"}


@router.get("/readiness")
def readiness(registry: RegistryClient = Depends(get_registry)):
    """Prêt si l'API Kubernetes répond à un listing."""
    try:
        registry.list_by_selector(ResourceKind.DEPLOYMENT)
    except RegistryError as e:
        return JSONResponse(status_code=503, content={"status": "unavailable", "kubernetes": str(e)})
    return {"status": "ready", "kubernetes": "reachable"}
