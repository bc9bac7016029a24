"""Exceptions du provisioning et de la lecture de l'état du cluster."""
from typing import List, Optional


class ProvisionerError(Exception):
    """Base de toutes les erreurs remontées à l'appelant.

    ``step`` nomme l'étape de provisioning qui a échoué (None hors
    provisioning) et ``submitted`` liste les objets déjà créés par la même
    requête avant l'échec. Ces objets ne sont pas supprimés.
    """

    error_code = "provisioner_error"

    def __init__(self, message: str, *, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.submitted: List[str] = []

    def at_step(self, step: str, submitted: List[str]) -> "ProvisionerError":
        self.step = step
        self.submitted = list(submitted)
        return self

    def __str__(self) -> str:
        if self.step:
            return f"{self.step}: {self.message}"
        return self.message


class ValidationError(ProvisionerError):
    """Requête mal formée, aucun effet de bord."""

    error_code = "validation_error"


class ConflictError(ProvisionerError):
    """Un objet du même type et du même nom existe déjà."""

    error_code = "conflict"

    def __init__(self, kind: str, name: str, *, step: Optional[str] = None):
        super().__init__(f"{kind} '{name}' already exists", step=step)
        self.kind = kind
        self.name = name


class NotFoundError(ProvisionerError):
    error_code = "not_found"

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} '{name}' not found")
        self.kind = kind
        self.name = name


class RegistryError(ProvisionerError):
    """Échec de transport ou d'API côté Kubernetes, non rejoué."""

    error_code = "registry_error"

    def __init__(self, message: str, *, status: Optional[int] = None, step: Optional[str] = None):
        super().__init__(message, step=step)
        self.status = status


class ConfigurationError(ProvisionerError):
    """Paramétrage du service inapplicable (politique de mot de passe...)."""

    error_code = "configuration_error"


class QuantityParseWarning(UserWarning):
    """Quantité de ressource illisible, remplacée par zéro."""
