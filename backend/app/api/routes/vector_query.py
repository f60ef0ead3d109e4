# backend/app/api/routes/vector_query.py

import logging
from typing import List, Tuple

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.vector_query import VectorDocument, VectorQueryRequest
from app.vector.filters import InvalidFilterError
from app.vector.manager import (
    get_collection_id,
    get_valid_collections,
    similarity_search,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/collections",
    response_model=List[str],
    summary="Names of the collections that can be queried",
)
def list_collections(db: Session = Depends(get_db)) -> List[str]:
    return get_valid_collections(db)


@router.post(
    "/query",
    response_model=List[Tuple[VectorDocument, float]],
    summary="pgvector similarity search within one collection",
)
def vector_query(
    payload: VectorQueryRequest,
    db: Session = Depends(get_db),
):
    """
    Return the k rows of a collection closest to the query vector.

    - Optional metadata filter (equality, `in`, `arrayContains`)
    - Each result is a `[document, distance]` pair, closest first.
    """
    name = payload.collection_name

    try:
        collections = get_valid_collections(db)
        if name not in collections:
            # collection may have been created after the cache was filled
            collections = get_valid_collections(db, refresh=True)
        if name not in collections:
            raise HTTPException(
                status_code=404,
                detail=(
                    f'Collection "{name}" not found. '
                    f"Valid collections are: {', '.join(collections)}"
                ),
            )

        collection_id = get_collection_id(db, name)
        if collection_id is None:
            raise HTTPException(
                status_code=404,
                detail=f'Collection "{name}" exists but ID could not be retrieved.',
            )

        return similarity_search(
            db=db,
            query_vector=payload.query,
            k=payload.k,
            collection_id=collection_id,
            metadata_filter=payload.filter,
            include_embedding=payload.include_embedding,
        )
    except HTTPException:
        raise
    except InvalidFilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception:
        logger.exception("[VECTOR_QUERY] Error in vector search (collection=%s)", name)
        raise HTTPException(status_code=500, detail="Internal server error")
