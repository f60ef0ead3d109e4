# backend/app/vector/filters.py

import json
from typing import Any, Dict, List, Tuple

SUPPORTED_OPERATORS = ("in", "arrayContains")


class InvalidFilterError(ValueError):
    """Raised when a metadata filter cannot be turned into SQL."""


def _as_text(key: str, value: Any) -> str:
    # ->> yields text, so compare against the JSON text form of the value
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    raise InvalidFilterError(
        f"Filter value for '{key}' must be a string, number or boolean."
    )


def _operand_list(key: str, op: str, values: Any) -> List[str]:
    if not isinstance(values, list):
        raise InvalidFilterError(f"Filter operator '{op}' for '{key}' expects a list.")
    return [_as_text(key, v) for v in values]


def build_filter_clauses(
    metadata_filter: Dict[str, Any],
    metadata_column: str,
) -> Tuple[List[str], Dict[str, Any], List[str]]:
    """
    Translate a metadata filter into WHERE fragments.

    Supported shapes per key:

    - ``{"key": "value"}``                  -> text equality
    - ``{"key": None}``                     -> key missing or JSON null
    - ``{"key": {"in": [...]}}``            -> text value is one of the list
    - ``{"key": {"arrayContains": [...]}}`` -> JSON array shares any element

    Keys and values are always bound as parameters, never interpolated.

    Returns (clauses, params, expanding_param_names).
    """
    clauses: List[str] = []
    params: Dict[str, Any] = {}
    expanding: List[str] = []

    column = f'"{metadata_column}"'

    for idx, (key, value) in enumerate(metadata_filter.items()):
        prefix = f"filter_{idx}"
        key_param = f"{prefix}_key"
        params[key_param] = key

        if value is None:
            clauses.append(f"{column} ->> :{key_param} IS NULL")
            continue

        if isinstance(value, dict):
            unknown = [op for op in value if op not in SUPPORTED_OPERATORS]
            if unknown or not value:
                raise InvalidFilterError(
                    f"Unsupported filter for '{key}': {sorted(unknown)}. "
                    f"Supported operators are: {', '.join(SUPPORTED_OPERATORS)}"
                )

            if "in" in value:
                in_param = f"{prefix}_in"
                params[in_param] = _operand_list(key, "in", value["in"])
                expanding.append(in_param)
                clauses.append(f"{column} ->> :{key_param} IN :{in_param}")

            if "arrayContains" in value:
                any_param = f"{prefix}_contains"
                params[any_param] = _operand_list(key, "arrayContains", value["arrayContains"])
                clauses.append(
                    f"({column} -> CAST(:{key_param} AS text)) ?| CAST(:{any_param} AS text[])"
                )
            continue

        clauses.append(f"{column} ->> :{key_param} = :{prefix}_value")
        params[f"{prefix}_value"] = _as_text(key, value)

    return clauses, params, expanding
