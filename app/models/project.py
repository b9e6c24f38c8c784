"""
Project model: the owner of a phrase set
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.core.db import Base


class Project(Base):
    """
    Localization project. Extraction clients address it by project_key.
    Managed elsewhere; this service only looks projects up.
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    project_key = Column(String(64), nullable=False, unique=True, index=True)
    source_locale = Column(String(16), nullable=False, default="en")
    supported_locales = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    phrases = relationship("Phrase", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
