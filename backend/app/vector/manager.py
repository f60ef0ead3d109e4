# backend/app/vector/manager.py

import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import String, bindparam, select, text
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import TextClause

from app.config import settings
from app.models.collection import Collection
from app.vector.distance import operator_for
from app.vector.filters import build_filter_clauses

logger = logging.getLogger(__name__)

DISTANCE_LABEL = "_distance"

# Process-lifetime cache of collection names, filled on first use
_valid_collections: Optional[List[str]] = None


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def computed_table_name(table: str, schema: Optional[str] = None) -> str:
    """Quoted table name, schema-qualified when a schema is configured."""
    if schema is None:
        return _quote(table)
    return f"{_quote(schema)}.{_quote(table)}"


def get_valid_collections(db: Session, refresh: bool = False) -> List[str]:
    """
    Names of all collections, loaded once per process.

    Not synchronized: two concurrent first requests may both load the list,
    which is harmless.
    """
    global _valid_collections
    if _valid_collections is None or refresh:
        names = db.execute(select(Collection.name)).scalars().all()
        _valid_collections = list(names)
        logger.info("[VECTOR_QUERY] Loaded %d collection names", len(_valid_collections))
    return _valid_collections


def reset_collection_cache() -> None:
    global _valid_collections
    _valid_collections = None


def get_collection_id(db: Session, collection_name: str) -> Optional[Any]:
    """Return the collection uuid, or None when no row carries that name."""
    stmt = select(Collection.uuid).where(Collection.name == collection_name)
    return db.execute(stmt).scalars().first()


def vector_literal(values: Sequence[float]) -> str:
    """Render floats as a pgvector text literal, e.g. ``[0.1,0.2]``."""
    return "[" + ",".join(str(float(x)) for x in values) + "]"


def build_similarity_query(
    query_vector: Sequence[float],
    k: int,
    collection_id: Any,
    metadata_filter: Optional[Dict[str, Any]] = None,
) -> Tuple[TextClause, Dict[str, Any]]:
    """
    Build the top-k statement for one collection, closest rows first.
    """
    filter_clauses, params, expanding = build_filter_clauses(
        metadata_filter or {},
        settings.PGVECTOR_METADATA_COLUMN,
    )

    where_clauses = [f"{_quote(settings.PGVECTOR_COLLECTION_ID_COLUMN)} = :collection_id"]
    where_clauses.extend(filter_clauses)

    operator = operator_for(
        settings.DISTANCE_STRATEGY,
        settings.PGVECTOR_EXTENSION_SCHEMA_NAME,
    )
    vector_type = (
        f"{settings.PGVECTOR_EXTENSION_SCHEMA_NAME}.vector"
        if settings.PGVECTOR_EXTENSION_SCHEMA_NAME is not None
        else "vector"
    )

    where_sql = " AND ".join(where_clauses)
    sql = f"""
        SELECT *,
            {_quote(settings.PGVECTOR_VECTOR_COLUMN)} {operator} CAST(:embedding AS {vector_type})
                AS "{DISTANCE_LABEL}"
        FROM {computed_table_name(settings.PGVECTOR_TABLE_NAME, settings.PGVECTOR_SCHEMA_NAME)}
        WHERE {where_sql}
        ORDER BY "{DISTANCE_LABEL}" ASC
        LIMIT :k
    """

    params.update(
        {
            "embedding": vector_literal(query_vector),
            "collection_id": collection_id,
            "k": k,
        }
    )

    statement = text(sql)
    if expanding:
        # typed so an empty list renders CAST(NULL AS VARCHAR), comparable to ->> text
        statement = statement.bindparams(
            *(bindparam(name, expanding=True, type_=String) for name in expanding)
        )

    return statement, params


def parse_embedding(value: Any) -> Optional[List[float]]:
    # psycopg2 hands back pgvector values as text unless an adapter is registered
    if value is None:
        return None
    if isinstance(value, str):
        return [float(x) for x in json.loads(value)]
    return [float(x) for x in value]


def shape_results(
    rows: Sequence[Mapping[str, Any]],
    include_embedding: bool = False,
) -> List[Tuple[Dict[str, Any], float]]:
    """
    Turn result rows into ``[document, distance]`` pairs.

    Rows without a distance or without content are dropped.
    """
    content_col = settings.PGVECTOR_CONTENT_COLUMN
    metadata_col = settings.PGVECTOR_METADATA_COLUMN
    vector_col = settings.PGVECTOR_VECTOR_COLUMN

    results: List[Tuple[Dict[str, Any], float]] = []
    for row in rows:
        distance = row.get(DISTANCE_LABEL)
        content = row.get(content_col)
        if distance is None or content is None:
            continue

        metadata = row.get(metadata_col)
        if include_embedding:
            metadata = dict(metadata or {})
            metadata[vector_col] = parse_embedding(row.get(vector_col))

        row_id = row.get(settings.PGVECTOR_ID_COLUMN)
        document = {
            "pageContent": content,
            "metadata": metadata,
            "id": str(row_id) if row_id is not None else None,
        }
        results.append((document, float(distance)))

    return results


def similarity_search(
    db: Session,
    query_vector: Sequence[float],
    k: int,
    collection_id: Any,
    metadata_filter: Optional[Dict[str, Any]] = None,
    include_embedding: bool = False,
) -> List[Tuple[Dict[str, Any], float]]:
    """
    Run a pgvector similarity search inside one collection.
    """
    t_start = time.perf_counter()

    statement, params = build_similarity_query(query_vector, k, collection_id, metadata_filter)
    rows = db.execute(statement, params).mappings().all()

    results = shape_results(rows, include_embedding=include_embedding)
    logger.info(
        "[VECTOR_QUERY] %d rows (%d kept) for collection %s in %.3fs",
        len(rows),
        len(results),
        collection_id,
        time.perf_counter() - t_start,
    )
    return results
