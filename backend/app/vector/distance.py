# backend/app/vector/distance.py

from enum import Enum
from typing import Optional


class DistanceStrategy(str, Enum):
    COSINE = "cosine"
    INNER_PRODUCT = "innerProduct"
    EUCLIDEAN = "euclidean"


# pgvector operators; all of them sort ascending (closest first)
_OPERATORS = {
    DistanceStrategy.COSINE: "<=>",
    DistanceStrategy.INNER_PRODUCT: "<#>",  # negative inner product
    DistanceStrategy.EUCLIDEAN: "<->",
}


def operator_for(strategy: str, extension_schema: Optional[str] = None) -> str:
    """
    Return the pgvector distance operator for a strategy.

    When pgvector lives outside the search_path the operator has to be
    schema-qualified, e.g. ``OPERATOR(extensions.<=>)``.
    """
    try:
        operator = _OPERATORS[DistanceStrategy(strategy)]
    except ValueError:
        raise ValueError(f"Unknown distance strategy: {strategy}") from None

    if extension_schema is not None:
        return f"OPERATOR({extension_schema}.{operator})"
    return operator
