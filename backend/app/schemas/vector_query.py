# app/schemas/vector_query.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat

from app.config import settings


class VectorQueryRequest(BaseModel):
    """Body of POST /query. Field names follow the JS client (camelCase)."""

    model_config = ConfigDict(populate_by_name=True)

    query: List[FiniteFloat] = Field(..., min_length=1, description="Query vector (finite floats only).")
    k: int = Field(
        settings.DEFAULT_K,
        ge=1,
        le=settings.MAX_K,
        description="Number of results to return.",
    )
    filter: Dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata filter, e.g. {'lang': 'en', 'tag': {'in': ['a', 'b']}}.",
    )
    include_embedding: bool = Field(False, alias="includeEmbedding")
    collection_name: str = Field(
        settings.DEFAULT_COLLECTION_NAME,
        alias="collectionName",
        min_length=1,
    )


class VectorDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page_content: str = Field(..., alias="pageContent")
    metadata: Optional[Dict[str, Any]] = None
    id: Optional[str] = None
