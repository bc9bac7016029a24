"""
Construction des manifestes Kubernetes d'une application
Fonctions pures : aucune I/O, une fonction de construction par variante
"""
import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .config import settings
from .credentials import generate_password
from .errors import ConfigurationError, NotFoundError
from .k8s_utils import (
    config_map_name,
    create_app_labels,
    ingress_name,
    lenient_quantity,
    secret_name,
    service_name,
    validate_k8s_name,
    volume_claim_name,
)
from .registry import ResourceKind
from .schemas import KeyValuePair, ProvisioningRequest

PASSWORD_KEY = "password"


class AppVariant(enum.Enum):
    STATELESS = "stateless"
    POSTGRES = "postgres"

    @classmethod
    def from_route(cls, value: str) -> "AppVariant":
        """Variante gérée demandée par ``/deployments/ready/{variant}``."""
        if value == cls.POSTGRES.value:
            return cls.POSTGRES
        raise NotFoundError("app type", value)


@dataclass
class ResourceBundle:
    """Manifestes d'une requête, dans l'ordre où ils seront soumis."""
    app_name: str
    variant: AppVariant
    workload: Dict[str, Any]
    service: Dict[str, Any]
    secret: Optional[Dict[str, Any]] = None
    config_map: Optional[Dict[str, Any]] = None
    ingress: Optional[Dict[str, Any]] = None
    credential: Optional[str] = None

    @property
    def workload_kind(self) -> ResourceKind:
        if self.variant is AppVariant.POSTGRES:
            return ResourceKind.STATEFUL_SET
        return ResourceKind.DEPLOYMENT

    def submissions(self) -> Iterator[Tuple[str, ResourceKind, Dict[str, Any]]]:
        """Yield ``(step, kind, manifest)``; secret and config precede the workload."""
        if self.secret is not None:
            yield "secret", ResourceKind.SECRET, self.secret
        if self.config_map is not None:
            yield "config_map", ResourceKind.CONFIG_MAP, self.config_map
        yield "service", ResourceKind.SERVICE, self.service
        if self.ingress is not None:
            yield "ingress", ResourceKind.INGRESS, self.ingress
        yield "workload", self.workload_kind, self.workload


def _as_mapping(pairs: List[KeyValuePair]) -> Dict[str, str]:
    # dict conserve l'ordre d'insertion; la dernière valeur d'une clé gagne
    return {kv.key: kv.value for kv in pairs}


def env_from_sources(secret: Optional[str], config_map: Optional[str]) -> List[Dict[str, Any]]:
    """Références envFrom : le secret d'abord, puis la ConfigMap."""
    sources: List[Dict[str, Any]] = []
    if secret:
        sources.append({"secretRef": {"name": secret}})
    if config_map:
        sources.append({"configMapRef": {"name": config_map}})
    return sources


def resource_requests(request: ProvisioningRequest) -> Dict[str, str]:
    requests: Dict[str, str] = {}
    cpu = lenient_quantity(request.resources.cpu, "cpu")
    memory = lenient_quantity(request.resources.ram, "ram")
    if cpu is not None:
        requests["cpu"] = cpu
    if memory is not None:
        requests["memory"] = memory
    return requests


def create_secret_manifest(name: str, data: Dict[str, str], labels: Dict[str, str]) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": name, "labels": labels},
        "type": "Opaque",
        "stringData": data,
    }


def create_config_map_manifest(name: str, data: Dict[str, str], labels: Dict[str, str]) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name, "labels": labels},
        "data": data,
    }


def create_service_manifest(app_name: str, service_port: int, labels: Dict[str, str]) -> Dict[str, Any]:
    """Crée le manifeste du service"""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": service_name(app_name),
            "labels": labels,
        },
        "spec": {
            "selector": {"app": app_name},
            "ports": [
                {
                    "port": service_port,
                    "targetPort": service_port,
                    "protocol": "TCP",
                }
            ],
        },
    }


def create_ingress_manifest(
    app_name: str,
    host: Optional[str],
    path: Optional[str],
    service_port: int,
    labels: Dict[str, str],
) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {
        "name": ingress_name(app_name),
        "labels": labels,
    }
    if settings.INGRESS_EXTRA_ANNOTATIONS:
        metadata["annotations"] = dict(settings.INGRESS_EXTRA_ANNOTATIONS)

    rule: Dict[str, Any] = {
        "http": {
            "paths": [
                {
                    "path": path or settings.INGRESS_DEFAULT_PATH,
                    "pathType": settings.INGRESS_PATH_TYPE,
                    "backend": {
                        "service": {
                            "name": service_name(app_name),
                            "port": {"number": service_port},
                        }
                    },
                }
            ]
        },
    }
    # Sans hôte, la règle s'applique à tout le trafic entrant
    if host:
        rule["host"] = host

    spec: Dict[str, Any] = {"rules": [rule]}
    if settings.INGRESS_CLASS_NAME:
        spec["ingressClassName"] = settings.INGRESS_CLASS_NAME

    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": metadata,
        "spec": spec,
    }


def create_deployment_manifest(
    app_name: str,
    image: str,
    replicas: int,
    container_port: int,
    requests: Dict[str, str],
    env_from: List[Dict[str, Any]],
    labels: Dict[str, str],
) -> Dict[str, Any]:
    """Crée le manifeste du déploiement"""
    container_spec: Dict[str, Any] = {
        "name": app_name,
        "image": image,
        "ports": [{"containerPort": container_port}],
    }
    if requests:
        container_spec["resources"] = {"requests": requests}
    if env_from:
        container_spec["envFrom"] = env_from

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": app_name,
            "labels": labels,
        },
        "spec": {
            "replicas": replicas,
            "selector": {
                "matchLabels": {"app": app_name},
            },
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "containers": [container_spec],
                },
            },
        },
    }


def create_postgres_statefulset_manifest(
    app_name: str,
    requests: Dict[str, str],
    storage: str,
    labels: Dict[str, str],
) -> Dict[str, Any]:
    claim = volume_claim_name(app_name)
    container_spec: Dict[str, Any] = {
        "name": app_name,
        "image": settings.POSTGRES_IMAGE,
        "env": [
            {"name": "POSTGRES_USER", "value": settings.POSTGRES_USER},
            {
                "name": "POSTGRES_PASSWORD",
                "valueFrom": {"secretKeyRef": {"name": secret_name(app_name), "key": PASSWORD_KEY}},
            },
            {"name": "PGDATA", "value": "/var/lib/postgresql/data/pgdata"},
        ],
        "ports": [{"containerPort": settings.POSTGRES_PORT, "name": "postgres"}],
        "volumeMounts": [{"name": claim, "mountPath": "/var/lib/postgresql/data"}],
    }
    if requests:
        container_spec["resources"] = {"requests": requests}

    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": app_name, "labels": labels},
        "spec": {
            "serviceName": app_name,
            "replicas": 1,
            "selector": {"matchLabels": {"app": app_name}},
            "template": {
                "metadata": {"labels": labels},
                "spec": {"containers": [container_spec]},
            },
            "volumeClaimTemplates": [
                {
                    "metadata": {"name": claim, "labels": labels},
                    "spec": {
                        "accessModes": ["ReadWriteOnce"],
                        "resources": {"requests": {"storage": storage}},
                    },
                }
            ],
        },
    }


def build_stateless_bundle(request: ProvisioningRequest) -> ResourceBundle:
    name = validate_k8s_name(request.app_name)
    labels = create_app_labels(name, AppVariant.STATELESS.value)

    secret = None
    if request.secrets:
        secret = create_secret_manifest(secret_name(name), _as_mapping(request.secrets), labels)

    config_map = None
    if request.envs:
        config_map = create_config_map_manifest(config_map_name(name), _as_mapping(request.envs), labels)

    ingress = None
    if request.external_access.enabled:
        ingress = create_ingress_manifest(
            name, request.exposure_host, request.exposure_path, request.service_port, labels
        )

    env_from = env_from_sources(
        secret["metadata"]["name"] if secret else None,
        config_map["metadata"]["name"] if config_map else None,
    )
    workload = create_deployment_manifest(
        name,
        request.image,
        request.replicas,
        request.service_port,
        resource_requests(request),
        env_from,
        labels,
    )

    return ResourceBundle(
        app_name=name,
        variant=AppVariant.STATELESS,
        workload=workload,
        service=create_service_manifest(name, request.service_port, labels),
        secret=secret,
        config_map=config_map,
        ingress=ingress,
    )


def build_postgres_bundle(request: ProvisioningRequest) -> ResourceBundle:
    """PostgreSQL géré : port, hôte et mot de passe imposés, envs/secrets ignorés."""
    name = validate_k8s_name(request.app_name)
    labels = create_app_labels(name, AppVariant.POSTGRES.value)

    try:
        credential = generate_password(
            length=settings.POSTGRES_PASSWORD_LENGTH,
            num_digits=settings.POSTGRES_PASSWORD_DIGITS,
            num_symbols=settings.POSTGRES_PASSWORD_SYMBOLS,
            allow_repeat=settings.POSTGRES_PASSWORD_ALLOW_REPEAT,
        )
    except ValueError as e:
        raise ConfigurationError(f"password policy cannot be met: {e}") from e
    secret = create_secret_manifest(secret_name(name), {PASSWORD_KEY: credential}, labels)

    ingress = None
    if request.external_access.enabled:
        ingress = create_ingress_manifest(
            name, settings.POSTGRES_HOST, request.exposure_path, settings.POSTGRES_PORT, labels
        )

    storage = (
        lenient_quantity(request.resources.disk, "disk", fallback=settings.POSTGRES_STORAGE_DEFAULT)
        or settings.POSTGRES_STORAGE_DEFAULT
    )
    workload = create_postgres_statefulset_manifest(name, resource_requests(request), storage, labels)

    return ResourceBundle(
        app_name=name,
        variant=AppVariant.POSTGRES,
        workload=workload,
        service=create_service_manifest(name, settings.POSTGRES_PORT, labels),
        secret=secret,
        ingress=ingress,
        credential=credential,
    )


BUILDERS: Dict[AppVariant, Callable[[ProvisioningRequest], ResourceBundle]] = {
    AppVariant.STATELESS: build_stateless_bundle,
    AppVariant.POSTGRES: build_postgres_bundle,
}


def build_bundle(request: ProvisioningRequest, variant: AppVariant = AppVariant.STATELESS) -> ResourceBundle:
    return BUILDERS[variant](request)
