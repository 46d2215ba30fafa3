"""Row-request schemas - the grid's native page request and the normalized query."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class SortModelItem(BaseModel):
    """One entry of the grid's sort model."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    col_id: str = Field(..., alias="colId")
    sort: str = "asc"


class FilterModelItem(BaseModel):
    """One column filter from the grid's filter model.

    ``type`` is the filter operation ('contains', 'notContains', 'equals', ...);
    ``filter`` is the user-entered value.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Optional[str] = None
    filter: Any = None
    filter_type: Optional[str] = Field(default=None, alias="filterType")


class NativePageRequest(BaseModel):
    """The grid engine's server-side row request."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    start_row: Optional[int] = Field(default=None, alias="startRow")
    end_row: Optional[int] = Field(default=None, alias="endRow")
    sort_model: list[SortModelItem] = Field(default_factory=list, alias="sortModel")
    filter_model: dict[str, FilterModelItem] = Field(default_factory=dict, alias="filterModel")

    @field_validator("sort_model", "filter_model", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return [] if info.field_name == "sort_model" else {}
        return v


class NormalizedQuery(BaseModel):
    """Transport-agnostic page query.

    ``order_by`` entries are either ``[field, direction]`` or, for a
    related-entity field, ``[{"model": "Account", "as": "account"}, field, direction]``.
    ``filter`` maps field names to a literal value (equality) or a
    single-operator predicate such as ``{"$iLike": "%ann%"}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    offset: int = 0
    limit: int = 0
    order_by: list[list[Any]] = Field(default_factory=list, alias="orderBy")
    filter: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
