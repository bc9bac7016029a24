"""
Routeurs de l'API découpés par domaine fonctionnel.
Chaque sous-module expose un ``router`` APIRouter.
"""
from .deployments import router as deployments_router
from .app_health import router as app_health_router
from .probes import router as probes_router

__all__ = [
    "deployments_router",
    "app_health_router",
    "probes_router",
]
