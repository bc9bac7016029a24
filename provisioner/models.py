"""
Modèles SQLAlchemy du suivi de santé
Principe KISS : Uniquement les modèles utilisés
"""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from .database import Base


# Compteurs de succès/échec par application
class AppHealth(Base):
    __tablename__ = "app_health"

    id = Column(Integer, primary_key=True, index=True)
    app_name = Column(String(63), unique=True, index=True, nullable=False)
    failure_count = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    last_failure = Column(DateTime(timezone=True), nullable=True)
    last_success = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
