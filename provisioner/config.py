"""
Configuration centralisée pour l'API de provisioning
Applique le principe KISS pour une configuration simple et claire
"""
import os
from pathlib import Path
from typing import Dict
from dotenv import load_dotenv
from kubernetes import config

# Charger les variables d'environnement
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


class Settings:
    """Configuration centralisée de l'application"""

    # API Configuration
    API_TITLE = "Provisioner API"
    API_DESCRIPTION = "API pour provisionner des applications sur Kubernetes."
    API_VERSION = "1.0.0"
    API_PORT = int(os.getenv("API_PORT", 8081))
    DEBUG_MODE = _env_flag("DEBUG_MODE", "False")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = Path(os.getenv("LOG_DIR", Path(__file__).resolve().parents[1] / "logs"))
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "10"))
    AUDIT_LOG_MAX_BYTES = int(os.getenv("AUDIT_LOG_MAX_BYTES", str(10 * 1024 * 1024)))
    AUDIT_LOG_BACKUP_COUNT = int(os.getenv("AUDIT_LOG_BACKUP_COUNT", "20"))
    LOG_ENABLE_CONSOLE = _env_flag("LOG_ENABLE_CONSOLE", "True")

    # Kubernetes Configuration
    K8S_NAMESPACE = os.getenv("K8S_NAMESPACE", "default")
    K8S_IN_CLUSTER = _env_flag("K8S_IN_CLUSTER", "False")
    KUBECONFIG = os.getenv("KUBECONFIG", None)

    # Ingress
    INGRESS_CLASS_NAME = os.getenv("INGRESS_CLASS_NAME", "").strip() or None
    INGRESS_DEFAULT_PATH = os.getenv("INGRESS_DEFAULT_PATH", "/") or "/"
    INGRESS_PATH_TYPE = os.getenv("INGRESS_PATH_TYPE", "Prefix").strip() or "Prefix"

    _INGRESS_EXTRA_ANNOTATIONS = os.getenv("INGRESS_EXTRA_ANNOTATIONS", "")
    INGRESS_EXTRA_ANNOTATIONS: Dict[str, str] = {}
    if _INGRESS_EXTRA_ANNOTATIONS:
        for entry in _INGRESS_EXTRA_ANNOTATIONS.split(","):
            if not entry:
                continue
            if "=" in entry:
                key, value = entry.split("=", 1)
                INGRESS_EXTRA_ANNOTATIONS[key.strip()] = value.strip()

    # Variante PostgreSQL gérée
    POSTGRES_IMAGE = os.getenv("POSTGRES_IMAGE", "postgres:13")
    POSTGRES_PORT = 5432
    POSTGRES_HOST = "postgres.kubernetes.local"
    POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_STORAGE_DEFAULT = os.getenv("POSTGRES_STORAGE_DEFAULT", "2Gi")
    POSTGRES_PASSWORD_LENGTH = int(os.getenv("POSTGRES_PASSWORD_LENGTH", "64"))
    POSTGRES_PASSWORD_DIGITS = int(os.getenv("POSTGRES_PASSWORD_DIGITS", "10"))
    POSTGRES_PASSWORD_SYMBOLS = int(os.getenv("POSTGRES_PASSWORD_SYMBOLS", "10"))
    POSTGRES_PASSWORD_ALLOW_REPEAT = _env_flag("POSTGRES_PASSWORD_ALLOW_REPEAT", "False")

    # Renvoyer le mot de passe généré en clair dans la réponse HTTP
    EXPOSE_GENERATED_CREDENTIALS = _env_flag("EXPOSE_GENERATED_CREDENTIALS", "True")

    # Base de suivi de santé des applications
    DB_USER = os.getenv("DB_USER", "provisioner")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "password")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "3306")
    DB_NAME = os.getenv("DB_NAME", "provisioner")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
    )

    def init_kubernetes(self):
        """Initialise la configuration Kubernetes (in-cluster ou kubeconfig)"""
        if self.K8S_IN_CLUSTER:
            config.load_incluster_config()
        else:
            config.load_kube_config(config_file=self.KUBECONFIG)


# Instance globale des paramètres
settings = Settings()
