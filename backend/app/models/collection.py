# backend/app/models/collection.py

from sqlalchemy import JSON, Column, String
from sqlalchemy.dialects.postgresql import UUID

from app.config import settings
from app.database import Base


class Collection(Base):
    """Named partition of embedding rows (LangChain PGVector layout)."""

    __tablename__ = settings.PGVECTOR_COLLECTION_TABLE_NAME
    __table_args__ = {"schema": settings.PGVECTOR_SCHEMA_NAME}

    uuid = Column(UUID(as_uuid=True), primary_key=True)
    name = Column(String, nullable=False)
    cmetadata = Column(JSON)
