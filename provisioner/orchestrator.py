"""
Orchestrateur de provisioning
Soumet les manifestes d'une application dans l'ordre de dépendance
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .builder import AppVariant, build_bundle
from .errors import ProvisionerError
from .registry import RegistryClient
from .schemas import ProvisioningRequest

logger = logging.getLogger("provisioner.orchestrator")
audit_logger = logging.getLogger("provisioner.audit")


@dataclass
class ProvisioningResult:
    app_name: str
    variant: AppVariant
    created: List[str] = field(default_factory=list)
    credential: Optional[str] = None
    secret_name: Optional[str] = None


class ProvisioningOrchestrator:
    """
    Crée les objets d'une application : secret, config, service, ingress
    puis la charge de travail.

    La première étape en échec interrompt la séquence et son erreur est
    relevée avec le nom de l'étape et la liste des objets déjà créés.
    Ces objets restent en place : aucun retour arrière, aucune relance.
    Un second appel pour le même nom échoue sur un conflit du registre,
    aucune lecture préalable n'est faite ici.
    """

    def __init__(self, registry: RegistryClient):
        self.registry = registry

    def provision(
        self,
        request: ProvisioningRequest,
        variant: AppVariant = AppVariant.STATELESS,
    ) -> ProvisioningResult:
        try:
            bundle = build_bundle(request, variant)
        except ProvisionerError as e:
            raise e.at_step("build", [])

        submitted: List[str] = []
        for step, kind, manifest in bundle.submissions():
            name = manifest["metadata"]["name"]
            try:
                self.registry.create_if_absent(kind, name, manifest)
            except ProvisionerError as e:
                logger.warning(
                    "provisioning_step_failed",
                    extra={
                        "extra_fields": {
                            "app_name": bundle.app_name,
                            "variant": variant.value,
                            "step": step,
                            "kind": kind.value,
                            "name": name,
                            "error": e.message,
                            "error_code": e.error_code,
                            "orphaned": submitted,
                        }
                    },
                )
                raise e.at_step(step, submitted)
            submitted.append(f"{kind.value}/{name}")

        audit_logger.info(
            "application_provisioned",
            extra={
                "extra_fields": {
                    "app_name": bundle.app_name,
                    "variant": variant.value,
                    "created": submitted,
                }
            },
        )

        return ProvisioningResult(
            app_name=bundle.app_name,
            variant=variant,
            created=submitted,
            credential=bundle.credential,
            secret_name=bundle.secret["metadata"]["name"] if bundle.secret else None,
        )
