"""Table definition schemas (serialized and hydrated)."""

from gridweaver.definitions.live import (
    DEFAULT_COL_DEF,
    GRID_DEFAULTS,
    AbstractPagedDataSource,
    ActionCallback,
    LiveColumnSpec,
    LiveTableDefinition,
    PageResult,
)
from gridweaver.definitions.schemas import (
    DefaultSort,
    SerializedColumnSpec,
    SerializedTableDefinition,
    SerializedTableDefinitionPatch,
    TableHttpSpec,
)

__all__ = [
    "DEFAULT_COL_DEF",
    "GRID_DEFAULTS",
    "AbstractPagedDataSource",
    "ActionCallback",
    "DefaultSort",
    "LiveColumnSpec",
    "LiveTableDefinition",
    "PageResult",
    "SerializedColumnSpec",
    "SerializedTableDefinition",
    "SerializedTableDefinitionPatch",
    "TableHttpSpec",
]
