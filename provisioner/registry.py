"""
Accès au registre de ressources (l'API Kubernetes)
Interface étroite : créer-si-absent, lire, lister par sélecteur
"""
import abc
import enum
import logging
from typing import Any, Dict, List, NoReturn, Optional

import urllib3
from kubernetes import client

from .errors import ConflictError, NotFoundError, RegistryError

logger = logging.getLogger("provisioner.registry")


class ResourceKind(enum.Enum):
    CONFIG_MAP = "ConfigMap"
    SECRET = "Secret"
    SERVICE = "Service"
    INGRESS = "Ingress"
    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    POD = "Pod"


def format_selector(selector: Optional[Dict[str, str]]) -> Optional[str]:
    if not selector:
        return None
    return ",".join(f"{key}={value}" for key, value in selector.items())


class RegistryClient(abc.ABC):
    """Capacités du registre dont dépendent l'orchestrateur et les lectures."""

    @abc.abstractmethod
    def create_if_absent(self, kind: ResourceKind, name: str, spec: Dict[str, Any]) -> None:
        """Crée l'objet; ConflictError si un objet du même type/nom existe."""

    @abc.abstractmethod
    def get(self, kind: ResourceKind, name: str) -> Any:
        """Lit un objet; NotFoundError s'il est absent."""

    @abc.abstractmethod
    def list_by_selector(self, kind: ResourceKind, selector: Optional[Dict[str, str]] = None) -> List[Any]:
        """Liste les objets correspondant au sélecteur de labels.

        Aucun résultat n'est pas une erreur; un échec de listing lève
        RegistryError.
        """


def raise_registry_error(e: Exception, kind: ResourceKind, name: Optional[str] = None) -> NoReturn:
    """Mappe les erreurs Kubernetes vers la taxonomie du provisioner."""
    if isinstance(e, client.exceptions.ApiException):
        status = getattr(e, "status", None)
        if status == 409:
            raise ConflictError(kind.value, name or "") from e
        if status == 404 and name:
            raise NotFoundError(kind.value, name) from e
        reason = getattr(e, "reason", None) or str(e)
        if status == 503:
            reason = "Kubernetes apiserver unavailable (503: Service Unavailable)"
        target = f"{kind.value} '{name}'" if name else kind.value
        raise RegistryError(f"{target}: {reason}", status=status) from e

    if isinstance(e, (urllib3.exceptions.MaxRetryError, urllib3.exceptions.NewConnectionError)):
        raise RegistryError("unable to reach the Kubernetes API (connection refused)", status=503) from e

    if isinstance(e, (TimeoutError, ConnectionError, OSError)):
        raise RegistryError("Kubernetes unavailable (connection error)", status=503) from e

    raise RegistryError(f"Kubernetes error: {e}") from e


class KubernetesRegistryClient(RegistryClient):
    """Implémentation du registre sur le client Python officiel, limitée à un namespace."""

    # kind -> (api, suffixe des méthodes *_namespaced_<suffixe>)
    _METHODS = {
        ResourceKind.CONFIG_MAP: ("core_v1", "config_map"),
        ResourceKind.SECRET: ("core_v1", "secret"),
        ResourceKind.SERVICE: ("core_v1", "service"),
        ResourceKind.POD: ("core_v1", "pod"),
        ResourceKind.INGRESS: ("networking_v1", "ingress"),
        ResourceKind.DEPLOYMENT: ("apps_v1", "deployment"),
        ResourceKind.STATEFUL_SET: ("apps_v1", "stateful_set"),
    }

    def __init__(
        self,
        namespace: str,
        apps_v1: Optional[client.AppsV1Api] = None,
        core_v1: Optional[client.CoreV1Api] = None,
        networking_v1: Optional[client.NetworkingV1Api] = None,
    ):
        self.namespace = namespace
        self.apps_v1 = apps_v1 or client.AppsV1Api()
        self.core_v1 = core_v1 or client.CoreV1Api()
        self.networking_v1 = networking_v1 or client.NetworkingV1Api()

    def _method(self, verb: str, kind: ResourceKind):
        api_attr, suffix = self._METHODS[kind]
        return getattr(getattr(self, api_attr), f"{verb}_namespaced_{suffix}")

    def create_if_absent(self, kind: ResourceKind, name: str, spec: Dict[str, Any]) -> None:
        logger.debug(
            "registry_create",
            extra={"extra_fields": {"kind": kind.value, "name": name, "namespace": self.namespace}},
        )
        try:
            self._method("create", kind)(self.namespace, spec)
        except client.exceptions.ApiException as e:
            # 404 ici = namespace absent, pas un objet manquant
            if e.status == 404:
                raise_registry_error(e, kind)
            raise_registry_error(e, kind, name)
        except Exception as e:
            raise_registry_error(e, kind, name)

    def get(self, kind: ResourceKind, name: str) -> Any:
        try:
            return self._method("read", kind)(name, self.namespace)
        except Exception as e:
            raise_registry_error(e, kind, name)

    def list_by_selector(self, kind: ResourceKind, selector: Optional[Dict[str, str]] = None) -> List[Any]:
        label_selector = format_selector(selector)
        try:
            if label_selector:
                listing = self._method("list", kind)(self.namespace, label_selector=label_selector)
            else:
                listing = self._method("list", kind)(self.namespace)
        except client.exceptions.ApiException as e:
            # Pods : namespace vidé entre la lecture du déploiement et le listing
            if e.status == 404 and kind is ResourceKind.POD:
                return []
            raise_registry_error(e, kind)
        except Exception as e:
            raise_registry_error(e, kind)
        return list(getattr(listing, "items", []) or [])
