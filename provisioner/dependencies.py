"""Dépendances FastAPI : le registre est injecté dans l'orchestrateur et les lectures."""
from functools import lru_cache

from fastapi import Depends

from .config import settings
from .orchestrator import ProvisioningOrchestrator
from .query_service import QueryService
from .registry import KubernetesRegistryClient, RegistryClient


@lru_cache(maxsize=1)
def _kubernetes_registry() -> KubernetesRegistryClient:
    settings.init_kubernetes()
    return KubernetesRegistryClient(settings.K8S_NAMESPACE)


def get_registry() -> RegistryClient:
    return _kubernetes_registry()


def get_orchestrator(registry: RegistryClient = Depends(get_registry)) -> ProvisioningOrchestrator:
    return ProvisioningOrchestrator(registry)


def get_query_service(registry: RegistryClient = Depends(get_registry)) -> QueryService:
    return QueryService(registry)
