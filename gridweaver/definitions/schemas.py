"""Serialized table definition schemas - the stored/transport JSON form.

A SerializedTableDefinition is pure data: no functions, no component
references. Renderers are referenced by name and formatter logic is stored
as a list of expression-source strings. The hydrator turns these into a
LiveTableDefinition.

JSON keys are camelCase (they are consumed by a JavaScript grid engine);
Python attributes are snake_case. Both spellings are accepted on input.
Unknown column hints (sortable, pinned, cellClass, ...) are preserved.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DefinitionModel(BaseModel):
    """Base model with camelCase aliases and pass-through of extra keys."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> dict[str, Any]:
        """Dump as the persisted JSON document (aliases, unset fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class TableHttpSpec(DefinitionModel):
    """Describes how to fetch the table rows from the data endpoint."""

    url: str = Field(
        ...,
        min_length=1,
        description="Absolute or relative URL of the paged-data endpoint",
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Static filter entries merged into every page query",
    )


class DefaultSort(DefinitionModel):
    """Initial sort applied when the grid first renders."""

    col_id: str = Field(..., alias="colId", min_length=1)
    sort: Literal["asc", "desc"]


class SerializedColumnSpec(DefinitionModel):
    """One column's static configuration.

    ``formatter`` is an ordered list of expression sources. Every entry is
    evaluated against the same scope and only the last result is shown;
    an absent or empty list means "no formatting".
    """

    field: str = Field(..., min_length=1, description="Row record key shown in this column")
    header_name: Optional[str] = Field(default=None, alias="headerName")
    width: Optional[Union[int, float]] = None
    min_width: Optional[Union[int, float]] = Field(default=None, alias="minWidth")
    max_width: Optional[Union[int, float]] = Field(default=None, alias="maxWidth")
    flex: Optional[Union[int, float]] = None
    renderer: Optional[str] = Field(
        default=None,
        description="Name of a renderer in the host's renderer registry",
    )
    renderer_params: Optional[dict[str, Any]] = Field(
        default=None,
        alias="rendererParams",
        description="Parameters passed to the renderer component",
    )
    formatter: Optional[list[str]] = Field(
        default=None,
        description="Expression sources; the last one's result is displayed",
    )

    @field_validator("width", "min_width", "max_width", "flex", mode="after")
    @classmethod
    def validate_non_negative(cls, v: Optional[Union[int, float]]) -> Optional[Union[int, float]]:
        if v is not None and v < 0:
            raise ValueError(f"must be non-negative, got {v}")
        return v

    @field_validator("renderer", mode="after")
    @classmethod
    def validate_renderer_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("renderer name must not be blank")
        return v

    @property
    def has_formatter(self) -> bool:
        return bool(self.formatter)


class SerializedTableDefinition(DefinitionModel):
    """A table definition exactly as stored and served by the gateway.

    Column order is the visual order. Duplicate ``field`` keys are allowed
    but make saved column state ambiguous; callers should avoid them.
    """

    http: TableHttpSpec
    column_defs: list[SerializedColumnSpec] = Field(..., alias="columnDefs")
    default_sort: Optional[DefaultSort] = Field(default=None, alias="defaultSort")

    def column_keys(self) -> list[str]:
        return [c.field for c in self.column_defs]


class SerializedTableDefinitionPatch(DefinitionModel):
    """Partial update payload - only the supplied fields are validated and written."""

    http: Optional[TableHttpSpec] = None
    column_defs: Optional[list[SerializedColumnSpec]] = Field(default=None, alias="columnDefs")
    default_sort: Optional[DefaultSort] = Field(default=None, alias="defaultSort")

    @model_validator(mode="after")
    def reject_null_required_sections(self) -> "SerializedTableDefinitionPatch":
        for name in ("http", "column_defs"):
            if name in self.model_fields_set and getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"'{alias}' cannot be removed")
        return self
