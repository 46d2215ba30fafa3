"""Row-request translator - grid paging/sort/filter request to a normalized query.

The mapping is fixed:
- offset = startRow, limit = endRow - startRow (missing rows count as 0)
- first sort entry wins; no sort means createdAt descending
- 'contains' / 'notContains' become case-insensitive wildcard predicates,
  everything else is an equality match; ``id`` is always equality
- ``relation.field`` sorts become a structured model reference

to_query_params() is the only place that knows the transport encoding.
"""

import json
import logging
from typing import Any, Mapping, Optional, Union

from .schemas import FilterModelItem, NativePageRequest, NormalizedQuery

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = "createdAt"
DEFAULT_SORT_DIRECTION = "desc"

LIKE_OPERATOR = "$iLike"
NOT_LIKE_OPERATOR = "$notILike"

_FILTER_OPERATORS = {
    "contains": LIKE_OPERATOR,
    "notContains": NOT_LIKE_OPERATOR,
}

# Identifier fields are never substring-matched.
_EXACT_MATCH_FIELDS = frozenset({"id"})


def translate_filter(field: str, item: FilterModelItem) -> Any:
    """Map one grid filter to a predicate value."""
    operator = _FILTER_OPERATORS.get(item.type or "")
    if operator is None or field in _EXACT_MATCH_FIELDS:
        return item.filter
    return {operator: f"%{item.filter}%"}


def translate_order_by(col_id: str, direction: str) -> list[Any]:
    """Map a sort column to an order-by entry.

    ``account.name`` is split on the first dot into relation ``account``
    (model ``Account``) and field ``name``.
    """
    if "." not in col_id:
        return [col_id, direction]

    relation, _, column = col_id.partition(".")
    model = relation[:1].upper() + relation[1:]
    return [{"model": model, "as": relation}, column, direction]


def translate(request: Union[NativePageRequest, Mapping[str, Any]]) -> NormalizedQuery:
    """Translate a native grid page request into a NormalizedQuery."""
    if not isinstance(request, NativePageRequest):
        request = NativePageRequest.model_validate(request)

    start_row = request.start_row or 0
    end_row = request.end_row or 0

    if request.sort_model:
        sort = request.sort_model[0]
        order_by = [translate_order_by(sort.col_id, sort.sort)]
    else:
        order_by = [translate_order_by(DEFAULT_SORT_FIELD, DEFAULT_SORT_DIRECTION)]

    filters = {
        field: translate_filter(field, item)
        for field, item in request.filter_model.items()
    }

    query = NormalizedQuery(
        offset=start_row,
        limit=end_row - start_row,
        order_by=order_by,
        filter=filters,
    )
    logger.debug(
        f"Translated rows {start_row}-{end_row}: "
        f"{len(filters)} filter(s), order_by={order_by}"
    )
    return query


def to_query_params(
    query: NormalizedQuery,
    static_params: Optional[Mapping[str, Any]] = None,
) -> dict[str, str]:
    """Encode a query as URL parameters for the paged-data endpoint.

    ``static_params`` are merged into the filter map and win on key clashes.
    """
    merged_filter = {**query.filter, **(static_params or {})}
    return {
        "filter": json.dumps(merged_filter, default=str),
        "limit": str(query.limit),
        "offset": str(query.offset),
        "orderBy": json.dumps(query.order_by, default=str),
    }
