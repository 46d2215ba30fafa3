"""Tests for grid row-request translation."""

import json

import pytest

from gridweaver.translation import (
    NativePageRequest,
    NormalizedQuery,
    to_query_params,
    translate,
    translate_filter,
    translate_order_by,
)
from gridweaver.translation.schemas import FilterModelItem


# ── Paging and default sort ──────────────────────────────────────


class TestPaging:
    def test_offset_limit_and_default_sort(self):
        query = translate({"startRow": 10, "endRow": 30, "sortModel": [], "filterModel": {}})
        assert query.to_dict() == {
            "offset": 10,
            "limit": 20,
            "orderBy": [["createdAt", "desc"]],
            "filter": {},
        }

    def test_missing_rows_default_to_zero(self):
        query = translate({})
        assert query.offset == 0
        assert query.limit == 0
        assert query.order_by == [["createdAt", "desc"]]

    def test_null_sort_and_filter_models(self):
        query = translate({"startRow": 0, "endRow": 10, "sortModel": None, "filterModel": None})
        assert query.to_dict() == {
            "offset": 0,
            "limit": 10,
            "orderBy": [["createdAt", "desc"]],
            "filter": {},
        }

    def test_accepts_model_instance(self):
        request = NativePageRequest(start_row=0, end_row=50)
        query = translate(request)
        assert isinstance(query, NormalizedQuery)
        assert query.limit == 50


# ── Sort ─────────────────────────────────────────────────────────


class TestSort:
    def test_plain_column(self):
        query = translate({"startRow": 0, "endRow": 10, "sortModel": [{"colId": "name", "sort": "asc"}]})
        assert query.order_by == [["name", "asc"]]

    def test_only_first_entry_is_used(self):
        query = translate(
            {
                "startRow": 0,
                "endRow": 10,
                "sortModel": [
                    {"colId": "email", "sort": "desc"},
                    {"colId": "name", "sort": "asc"},
                ],
            }
        )
        assert query.order_by == [["email", "desc"]]

    def test_related_field(self):
        assert translate_order_by("account.name", "asc") == [
            {"model": "Account", "as": "account"},
            "name",
            "asc",
        ]

    def test_related_field_splits_on_first_dot(self):
        assert translate_order_by("owner.address.city", "desc") == [
            {"model": "Owner", "as": "owner"},
            "address.city",
            "desc",
        ]


# ── Filters ──────────────────────────────────────────────────────


class TestFilters:
    def test_contains_becomes_wildcard(self):
        query = translate(
            {
                "startRow": 0,
                "endRow": 10,
                "filterModel": {"name": {"type": "contains", "filter": "ann"}},
            }
        )
        assert query.filter == {"name": {"$iLike": "%ann%"}}

    def test_id_is_always_exact(self):
        query = translate(
            {
                "startRow": 0,
                "endRow": 10,
                "filterModel": {"id": {"type": "contains", "filter": "ann"}},
            }
        )
        assert query.filter == {"id": "ann"}

    def test_not_contains(self):
        item = FilterModelItem(type="notContains", filter="bot")
        assert translate_filter("email", item) == {"$notILike": "%bot%"}

    @pytest.mark.parametrize("filter_type", ["equals", "startsWith", None])
    def test_other_types_are_equality(self, filter_type):
        item = FilterModelItem(type=filter_type, filter="active")
        assert translate_filter("status", item) == "active"


# ── Transport encoding ───────────────────────────────────────────


class TestQueryParams:
    def test_encodes_json_fields(self):
        query = translate(
            {
                "startRow": 20,
                "endRow": 40,
                "sortModel": [{"colId": "name", "sort": "asc"}],
                "filterModel": {"name": {"type": "contains", "filter": "ann"}},
            }
        )
        params = to_query_params(query)
        assert params["limit"] == "20"
        assert params["offset"] == "20"
        assert json.loads(params["orderBy"]) == [["name", "asc"]]
        assert json.loads(params["filter"]) == {"name": {"$iLike": "%ann%"}}

    def test_static_params_win(self):
        query = translate({"startRow": 0, "endRow": 10, "filterModel": {"tenant": {"type": "equals", "filter": "evil"}}})
        params = to_query_params(query, {"tenant": "acme", "archived": False})
        assert json.loads(params["filter"]) == {"tenant": "acme", "archived": False}
