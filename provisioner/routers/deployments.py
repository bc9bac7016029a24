"""Endpoints de provisioning et de consultation des déploiements."""
import logging
from typing import List

from fastapi import APIRouter, Depends

from .. import schemas
from ..builder import AppVariant
from ..config import settings
from ..dependencies import get_orchestrator, get_query_service
from ..orchestrator import ProvisioningOrchestrator
from ..query_service import QueryService

router = APIRouter(tags=["deployments"])
logger = logging.getLogger("provisioner.api")


@router.get("/deployments/{name}", response_model=schemas.ApplicationStatus)
def get_deployment(name: str, query: QueryService = Depends(get_query_service)):
    """Statut d'une application et de ses pods (404 si absente)."""
    return query.describe_one(name)


@router.get("/deployments", response_model=List[schemas.ApplicationStatus])
def list_deployments(query: QueryService = Depends(get_query_service)):
    return query.describe_all()


@router.post(
    "/deployments",
    status_code=201,
    response_model=schemas.ProvisioningResponse,
    response_model_exclude_none=True,
)
def create_deployment(
    request: schemas.ProvisioningRequest,
    orchestrator: ProvisioningOrchestrator = Depends(get_orchestrator),
):
    """Provisionne une application sans état (Deployment)."""
    logger.debug(
        "api_create_deployment_request",
        extra={
            "extra_fields": {
                "app_name": request.app_name,
                "image": request.image,
                "replicas": request.replicas,
                "external_access": request.external_access.enabled,
            }
        },
    )
    result = orchestrator.provision(request, AppVariant.STATELESS)
    return schemas.ProvisioningResponse(
        message="Deployment created successfully!",
        app_name=result.app_name,
        variant=result.variant.value,
        created=result.created,
    )


@router.post(
    "/deployments/ready/{variant}",
    status_code=201,
    response_model=schemas.ProvisioningResponse,
    response_model_exclude_none=True,
)
def create_ready_deployment(
    variant: str,
    request: schemas.ProvisioningRequest,
    orchestrator: ProvisioningOrchestrator = Depends(get_orchestrator),
):
    """Provisionne une variante gérée (``postgres``), 404 pour les autres."""
    app_variant = AppVariant.from_route(variant)
    logger.debug(
        "api_create_ready_deployment_request",
        extra={"extra_fields": {"app_name": request.app_name, "variant": app_variant.value}},
    )
    result = orchestrator.provision(request, app_variant)

    response = schemas.ProvisioningResponse(
        message="Statefulset created successfully!",
        app_name=result.app_name,
        variant=result.variant.value,
        created=result.created,
        secret_name=result.secret_name,
    )
    # Mot de passe renvoyé en clair, désactivable par configuration
    if settings.EXPOSE_GENERATED_CREDENTIALS:
        response.password = result.credential
    return response
