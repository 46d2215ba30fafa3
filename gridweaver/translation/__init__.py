"""Row-request translation module."""

from gridweaver.translation.schemas import (
    FilterModelItem,
    NativePageRequest,
    NormalizedQuery,
    SortModelItem,
)
from gridweaver.translation.translator import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    to_query_params,
    translate,
    translate_filter,
    translate_order_by,
)

__all__ = [
    "DEFAULT_SORT_DIRECTION",
    "DEFAULT_SORT_FIELD",
    "FilterModelItem",
    "NativePageRequest",
    "NormalizedQuery",
    "SortModelItem",
    "to_query_params",
    "translate",
    "translate_filter",
    "translate_order_by",
]
