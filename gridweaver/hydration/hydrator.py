"""Definition hydrator - serialized table definition to live table definition.

hydrate() is a pure function of its inputs: no network I/O, no global
state. The same serialized definition can be hydrated concurrently for
different consumers (different renderer registries / action callbacks);
the input is never mutated.

Per column, in source order:
1. renderer name -> registry lookup. A miss degrades to default cell
   display (or raises RendererResolutionMiss when strict).
2. formatter sources -> compiled expressions bound into one callable that
   returns the LAST entry's result. Entries do not feed into each other.
3. everything else is copied through.
"""

import copy
import logging
from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from gridweaver.definitions.live import (
    ActionCallback,
    Formatter,
    LiveColumnSpec,
    LiveTableDefinition,
)
from gridweaver.definitions.schemas import SerializedColumnSpec, SerializedTableDefinition
from gridweaver.errors import CompileError, EvaluationError, RendererResolutionMiss, ValidationError
from gridweaver.expressions.compiler import CompiledExpression, compile_expression, evaluate
from gridweaver.expressions.scope import ExpressionScope

from .datasource import HttpPagedDataSource

logger = logging.getLogger(__name__)

# Column keys the hydrator consumes; everything else is passed to the engine as-is.
_HYDRATED_KEYS = frozenset({"field", "headerName", "renderer", "rendererParams", "formatter"})


def build_formatter(sources: list[str], field: str) -> Formatter:
    """Compile formatter sources into a single render-time callable.

    Every entry is evaluated against the same scope and the last result
    is returned. A failing entry is logged and contributes the raw value.

    Raises:
        CompileError: If any entry does not compile.
    """
    compiled: list[CompiledExpression] = [compile_expression(source) for source in sources]

    def formatter(scope: ExpressionScope) -> Any:
        result = scope.value
        for expression in compiled:
            try:
                result = evaluate(expression, scope)
            except EvaluationError as e:
                logger.warning(f"Formatter failed for column '{field}', showing raw value: {e}")
                result = scope.value
        return result

    return formatter


def hydrate_column(
    column: SerializedColumnSpec,
    renderer_registry: Mapping[str, Any],
    action_callback: Optional[ActionCallback] = None,
    *,
    strict: bool = False,
) -> LiveColumnSpec:
    """Hydrate a single serialized column (the input is left untouched)."""
    col_def = column.to_document()
    options = {k: copy.deepcopy(v) for k, v in col_def.items() if k not in _HYDRATED_KEYS}
    renderer_params = copy.deepcopy(column.renderer_params)

    renderer = None
    if column.renderer is not None:
        renderer = renderer_registry.get(column.renderer)
        if renderer is None:
            miss = RendererResolutionMiss(column.renderer, column.field)
            if strict:
                raise miss
            logger.warning(f"{miss}; using default cell display")
        elif action_callback is not None and renderer_params is not None:
            renderer_params = {**renderer_params, "onAction": action_callback}

    formatter = None
    if column.formatter:
        try:
            formatter = build_formatter(column.formatter, column.field)
        except CompileError as e:
            if strict:
                raise
            logger.error(f"Column '{column.field}' formatter disabled: {e}")

    return LiveColumnSpec(
        field=column.field,
        header_name=column.header_name,
        renderer=renderer,
        renderer_name=column.renderer,
        renderer_params=renderer_params,
        formatter=formatter,
        options=options,
        col_def=col_def,
    )


def hydrate(
    serialized: Union[SerializedTableDefinition, Mapping[str, Any]],
    renderer_registry: Mapping[str, Any],
    action_callback: Optional[ActionCallback] = None,
    *,
    strict: bool = False,
    base_url: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> LiveTableDefinition:
    """Turn a serialized table definition into a live one.

    Args:
        serialized: The stored definition (model or raw document)
        renderer_registry: Renderer name -> UI component reference
        action_callback: Injected as ``onAction`` into the renderer params
            of columns whose renderer resolved and that declare params
        strict: Raise on renderer misses and formatter compile errors
            instead of degrading the column
        base_url: Base for a relative ``http.url``, also applied when a
            ``client`` is injected
        client: Optional shared httpx.AsyncClient for page fetches

    Raises:
        ValidationError: If a raw document does not match the schema.
    """
    if not isinstance(serialized, SerializedTableDefinition):
        try:
            serialized = SerializedTableDefinition.model_validate(serialized)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    columns = [
        hydrate_column(column, renderer_registry, action_callback, strict=strict)
        for column in serialized.column_defs
    ]

    data_source = HttpPagedDataSource(
        serialized.http.url,
        copy.deepcopy(serialized.http.params),
        base_url=base_url,
        client=client,
    )

    default_sort = serialized.default_sort.model_copy() if serialized.default_sort else None

    resolved = sum(1 for c in columns if c.renderer is not None)
    formatted = sum(1 for c in columns if c.formatter is not None)
    logger.debug(
        f"Hydrated {len(columns)} column(s) for {serialized.http.url}: "
        f"{resolved} renderer(s), {formatted} formatter(s)"
    )

    return LiveTableDefinition(
        column_defs=columns,
        data_source=data_source,
        default_sort=default_sort,
    )
