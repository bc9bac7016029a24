"""Compteurs de succès/échec par application."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..errors import NotFoundError, ValidationError
from ..models import AppHealth

router = APIRouter(tags=["app-health"])
logger = logging.getLogger("provisioner.health")


def _record_outcome(db: Session, app_name: Optional[str], outcome: str) -> dict:
    if not app_name:
        raise ValidationError("app_name is required")

    app = db.query(AppHealth).filter(AppHealth.app_name == app_name).first()
    if app is None:
        # Première observation : l'application est enregistrée sans incrément
        db.add(AppHealth(app_name=app_name, failure_count=0, success_count=0))
        db.commit()
        logger.info("app_health_registered", extra={"extra_fields": {"app_name": app_name}})
        raise NotFoundError("app", app_name)

    now = datetime.now(timezone.utc)
    if outcome == "failure":
        app.failure_count += 1
        app.last_failure = now
    else:
        app.success_count += 1
        app.last_success = now
    db.commit()
    db.refresh(app)

    return {
        "message": f"{outcome} count increased",
        "app": schemas.AppHealthResponse.model_validate(app),
    }


@router.post("/increase_failure")
def increase_failure(app_name: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return _record_outcome(db, app_name, "failure")


@router.post("/increase_success")
def increase_success(app_name: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return _record_outcome(db, app_name, "success")


@router.get("/health/{app_name}", response_model=schemas.AppHealthResponse)
def get_app_health(app_name: str, db: Session = Depends(get_db)):
    app = db.query(AppHealth).filter(AppHealth.app_name == app_name).first()
    if app is None:
        raise NotFoundError("app", app_name)
    return app
