"""
Utilitaires Kubernetes - Fonctions de base pour les manifestes
Principe KISS : fonctions simples et focalisées
"""
import re
import warnings
from typing import Dict, Optional

from kubernetes.utils import parse_quantity

from .errors import QuantityParseWarning, ValidationError

APP_LABEL = "app"
MANAGED_BY_LABEL = "managed-by"
MANAGED_BY_VALUE = "provisioner"


def validate_k8s_name(name: str) -> str:
    """
    Valide un nom d'application pour Kubernetes
    Applique les règles RFC 1123 (label DNS)
    """
    if not name:
        raise ValidationError("appName must not be empty")
    if len(name) > 63:
        raise ValidationError(f"appName '{name}' is longer than 63 characters")
    if not re.match(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$', name):
        raise ValidationError(
            f"appName '{name}' is not a valid Kubernetes name: use lowercase "
            f"alphanumeric characters or '-', starting and ending with an "
            f"alphanumeric character"
        )
    return name


def service_name(app_name: str) -> str:
    return f"{app_name}-service"


def secret_name(app_name: str) -> str:
    return f"{app_name}-secret"


def config_map_name(app_name: str) -> str:
    return f"{app_name}-config"


def ingress_name(app_name: str) -> str:
    return f"{app_name}-ingress"


def volume_claim_name(app_name: str) -> str:
    return f"{app_name}-pv-claim"


def create_app_labels(app_name: str, app_type: str, additional_labels: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Crée les labels standards d'une application provisionnée
    """
    labels = {
        APP_LABEL: app_name,
        MANAGED_BY_LABEL: MANAGED_BY_VALUE,
        "app-type": app_type,
    }

    if additional_labels:
        labels.update(additional_labels)

    return labels


def lenient_quantity(value: Optional[str], field: str, fallback: str = "0") -> Optional[str]:
    """Valide une quantité Kubernetes (``100m``, ``512Mi``, ``2Gi``...).

    Une valeur vide renvoie None (champ omis). Une valeur illisible lève un
    ``QuantityParseWarning`` (journalisé via ``py.warnings``) et est
    remplacée par ``fallback`` au lieu d'interrompre la construction des
    manifestes.
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    try:
        parse_quantity(value)
    except ValueError as e:
        warnings.warn(
            QuantityParseWarning(f"invalid {field} quantity {value!r} ({e}), using {fallback}"),
            stacklevel=2,
        )
        return fallback
    return value
