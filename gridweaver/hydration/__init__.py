"""Hydration pipeline: serialized definition -> live grid configuration."""

from gridweaver.hydration.datasource import HttpPagedDataSource
from gridweaver.hydration.hydrator import build_formatter, hydrate, hydrate_column
from gridweaver.hydration.loader import fetch_table_definition, load_table_definition

__all__ = [
    "HttpPagedDataSource",
    "build_formatter",
    "fetch_table_definition",
    "hydrate",
    "hydrate_column",
    "load_table_definition",
]
