"""Hydrated (live) table definitions - what the grid engine actually consumes.

A LiveTableDefinition is ephemeral: built per hydration call, held by the
rendering layer, discarded when it unmounts or re-hydrates. Its columns carry
resolved renderer references and compiled formatter callables, and it owns
a paged data source instead of a fetch spec.
"""

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from gridweaver.expressions.scope import ExpressionScope
from gridweaver.translation.schemas import NativePageRequest, NormalizedQuery

from .schemas import DefaultSort

Formatter = Callable[[ExpressionScope], Any]
ActionCallback = Callable[[str, Any], None]

DEFAULT_COL_DEF: dict[str, Any] = {
    "sortable": True,
    "filter": True,
    "resizable": True,
}

# Server-side row model settings the grid is rendered with
GRID_DEFAULTS: dict[str, Any] = {
    "rowModelType": "serverSide",
    "pagination": True,
    "paginationPageSize": 10,
    "cacheBlockSize": 50,
    "rowSelection": "multiple",
}


@dataclass
class PageResult:
    """Outcome of one page pull: rows + total count, or a failure."""

    success: bool
    rows: list[Any] = dataclass_field(default_factory=list)
    row_count: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "PageResult":
        return cls(success=False, error=error)


@runtime_checkable
class AbstractPagedDataSource(Protocol):
    """Pull-based page source. Each call yields exactly one PageResult."""

    async def get_rows(self, query: NormalizedQuery) -> PageResult: ...

    async def fetch(self, request: NativePageRequest) -> PageResult: ...


def _read_param(params: Any, name: str) -> Any:
    if isinstance(params, dict):
        return params.get(name)
    return getattr(params, name, None)


@dataclass
class LiveColumnSpec:
    """A hydrated column."""

    field: str
    header_name: Optional[str] = None
    renderer: Any = None
    renderer_name: Optional[str] = None
    renderer_params: Optional[dict[str, Any]] = None
    formatter: Optional[Formatter] = None
    options: dict[str, Any] = dataclass_field(default_factory=dict)
    col_def: dict[str, Any] = dataclass_field(default_factory=dict)

    def format_value(self, value: Any, api: Any = None, node: Any = None) -> Any:
        """Format a raw cell value; returns it unchanged when there is no formatter."""
        if self.formatter is None:
            return value
        scope = ExpressionScope(api=api, col_def=self.col_def, node=node, value=value)
        return self.formatter(scope)

    def value_formatter(self, params: Any) -> Any:
        """Grid-engine callback: ``params`` carries value, api and node."""
        return self.format_value(
            _read_param(params, "value"),
            api=_read_param(params, "api"),
            node=_read_param(params, "node"),
        )

    def to_column_def(self) -> dict[str, Any]:
        """Column definition in the grid engine's shape."""
        column: dict[str, Any] = {"field": self.field}
        if self.header_name is not None:
            column["headerName"] = self.header_name
        column.update(self.options)
        if self.renderer is not None:
            column["cellRenderer"] = self.renderer
        if self.renderer_params is not None:
            column["cellRendererParams"] = self.renderer_params
        if self.formatter is not None:
            column["valueFormatter"] = self.value_formatter
        return column


@dataclass
class LiveTableDefinition:
    """A render-ready table: live columns, a data source and the default sort."""

    column_defs: list[LiveColumnSpec]
    data_source: AbstractPagedDataSource
    default_sort: Optional[DefaultSort] = None
    default_col_def: dict[str, Any] = dataclass_field(default_factory=lambda: dict(DEFAULT_COL_DEF))

    def column(self, field: str) -> Optional[LiveColumnSpec]:
        """First column bound to ``field``."""
        for column in self.column_defs:
            if column.field == field:
                return column
        return None

    def initial_column_state(self) -> list[dict[str, Any]]:
        """Column state that applies the default sort, for the engine's applyColumnState."""
        if self.default_sort is None:
            return []
        return [{"colId": self.default_sort.col_id, "sort": self.default_sort.sort}]

    def to_grid_options(self) -> dict[str, Any]:
        return {
            **GRID_DEFAULTS,
            "columnDefs": [c.to_column_def() for c in self.column_defs],
            "defaultColDef": dict(self.default_col_def),
            "serverSideDatasource": self.data_source,
        }
