"""Formatter expression engine.

Stored column formatters are small expressions evaluated against a fixed
scope (api, colDef, node, value, dates), with a closed filter library:

    value | split:',' | capitalize | join:', '
    value | date:'YYYY-MM-DD'
    colDef.headerName + ': ' + (value | default:'n/a')
"""

from gridweaver.expressions.compiler import (
    CompiledExpression,
    ExpressionCompiler,
    compile_expression,
    evaluate,
)
from gridweaver.expressions.filters import FILTERS, get_filter
from gridweaver.expressions.scope import (
    DATES,
    DEFAULT_DATE_FORMAT,
    DateUtils,
    ExpressionScope,
    format_datetime,
    parse_datetime,
)

__all__ = [
    "DATES",
    "DEFAULT_DATE_FORMAT",
    "CompiledExpression",
    "DateUtils",
    "ExpressionCompiler",
    "ExpressionScope",
    "FILTERS",
    "compile_expression",
    "evaluate",
    "format_datetime",
    "get_filter",
    "parse_datetime",
]
