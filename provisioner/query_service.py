"""Lecture de l'état des applications : déploiement + pods associés."""
import logging
from typing import Any, List

from .k8s_utils import APP_LABEL
from .registry import RegistryClient, ResourceKind
from .schemas import ApplicationStatus, UnitStatus

logger = logging.getLogger("provisioner.query")


def _map_pod(pod: Any) -> UnitStatus:
    status = getattr(pod, "status", None)
    return UnitStatus(
        name=pod.metadata.name,
        phase=getattr(status, "phase", None),
        host_ip=getattr(status, "host_ip", None),
        pod_ip=getattr(status, "pod_ip", None),
        start_time=getattr(status, "start_time", None),
    )


class QueryService:
    """Assemble un ApplicationStatus frais à chaque appel, sans cache."""

    def __init__(self, registry: RegistryClient):
        self.registry = registry

    def _status_for(self, deployment: Any) -> ApplicationStatus:
        labels = getattr(deployment.metadata, "labels", None) or {}
        app_label = labels.get(APP_LABEL) or deployment.metadata.name
        pods = self.registry.list_by_selector(ResourceKind.POD, {APP_LABEL: app_label})

        return ApplicationStatus(
            deployment_name=deployment.metadata.name,
            replicas=getattr(getattr(deployment, "spec", None), "replicas", None) or 0,
            ready_replicas=getattr(getattr(deployment, "status", None), "ready_replicas", None) or 0,
            pod_statuses=[_map_pod(pod) for pod in pods],
        )

    def describe_one(self, name: str) -> ApplicationStatus:
        """NotFoundError si aucun déploiement ne porte ce nom."""
        deployment = self.registry.get(ResourceKind.DEPLOYMENT, name)
        return self._status_for(deployment)

    def describe_all(self) -> List[ApplicationStatus]:
        # Un échec de listing remonte tel quel : vide et indéterminé restent distincts
        deployments = self.registry.list_by_selector(ResourceKind.DEPLOYMENT)
        statuses = [self._status_for(dep) for dep in deployments]
        logger.debug("applications_described", extra={"extra_fields": {"count": len(statuses)}})
        return statuses
