"""
Schémas Pydantic de l'API de provisioning
Principe KISS : Uniquement les schémas utilisés
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class KeyValuePair(BaseModel):
    key: str = Field(..., min_length=1)
    value: str = ""


class ResourceRequest(BaseModel):
    """Quantités opaques (``100m``, ``256Mi``, ``2Gi``), validées au build."""
    cpu: Optional[str] = None
    ram: Optional[str] = None
    disk: Optional[str] = None


class ExternalAccess(BaseModel):
    enabled: bool = False
    host: Optional[str] = None
    path: Optional[str] = None


class ProvisioningRequest(BaseModel):
    """Description déclarative d'une application à provisionner."""
    model_config = ConfigDict(populate_by_name=True)

    app_name: str = Field(..., alias="appName", min_length=1)
    replicas: int = Field(1, ge=0)
    image_address: str = Field(..., alias="imageAddress", min_length=1)
    image_tag: str = Field("latest", alias="imageTag")
    domain_address: Optional[str] = Field(None, alias="domainAddress")
    service_port: int = Field(80, alias="servicePort", ge=1, le=65535)
    resources: ResourceRequest = Field(default_factory=ResourceRequest)
    envs: List[KeyValuePair] = Field(default_factory=list)
    secrets: List[KeyValuePair] = Field(default_factory=list)
    external_access: ExternalAccess = Field(default_factory=ExternalAccess, alias="externalAccess")

    @model_validator(mode="before")
    @classmethod
    def _legacy_external_access(cls, data: Any) -> Any:
        # Ancien format: {"ExternalAccess": true}
        if isinstance(data, dict) and "ExternalAccess" in data and "externalAccess" not in data:
            data = dict(data)
            data["externalAccess"] = data.pop("ExternalAccess")
        return data

    @field_validator("external_access", mode="before")
    @classmethod
    def _bool_external_access(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return {"enabled": value}
        return value

    @property
    def image(self) -> str:
        if not self.image_tag:
            return self.image_address
        return f"{self.image_address}:{self.image_tag}"

    @property
    def exposure_host(self) -> Optional[str]:
        return self.external_access.host or self.domain_address

    @property
    def exposure_path(self) -> Optional[str]:
        return self.external_access.path


class UnitStatus(BaseModel):
    """Statut d'un pod de l'application."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    phase: Optional[str] = None
    host_ip: Optional[str] = Field(None, alias="hostIP")
    pod_ip: Optional[str] = Field(None, alias="podIP")
    start_time: Optional[datetime] = Field(None, alias="startTime")


class ApplicationStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deployment_name: str = Field(..., alias="deploymentName")
    replicas: int = 0
    ready_replicas: int = Field(0, alias="readyReplicas")
    pod_statuses: List[UnitStatus] = Field(default_factory=list, alias="podStatuses")


class ProvisioningResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    app_name: str = Field(..., alias="appName")
    variant: str
    created: List[str] = Field(default_factory=list)
    password: Optional[str] = None
    secret_name: Optional[str] = Field(None, alias="secretName")


class AppHealthResponse(BaseModel):
    id: int
    app_name: str
    failure_count: int
    success_count: int
    last_failure: Optional[datetime] = None
    last_success: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
