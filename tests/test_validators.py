"""
Tests for listing input validation.
"""

import pytest

from query.entities import ARTICLES, TAGS, get_entity_config
from query.errors import InvalidFilterSpec, InvalidSortSpec
from query.validators import collect_filter_errors, collect_sort_errors, validate_listing_input


class TestFilterFields:

    def test_known_fields_pass(self):
        assert collect_filter_errors("articles", ARTICLES, {"title": "x", "hubs": [1], "votes": 3}) == []

    def test_unknown_field_lists_valid_fields(self):
        errors = collect_filter_errors("tags", TAGS, {"color": "red"})

        assert len(errors) == 1
        assert errors[0]["code"] == "UNKNOWN_FIELD"
        assert errors[0]["path"] == "filters.color"
        assert errors[0]["validFields"] == ["id", "name", "hub", "articles"]

    def test_none_values_are_ignored(self):
        assert collect_filter_errors("tags", TAGS, {"color": None}) == []


class TestSortFields:

    def test_sortable_fields(self):
        assert ARTICLES.sortable == ["title", "author", "answers", "votes", "createdAt"]
        assert collect_sort_errors("articles", ARTICLES, {"votes": "desc", "author": "ASC"}) == []

    def test_not_sortable(self):
        errors = collect_sort_errors("articles", ARTICLES, {"tags": "ASC"})
        assert errors[0]["code"] == "NOT_SORTABLE"
        assert "createdAt" in errors[0]["validSortFields"]

    @pytest.mark.parametrize("direction", ["up", "", 1])
    def test_invalid_direction(self, direction):
        errors = collect_sort_errors("articles", ARTICLES, {"title": direction})
        assert errors[0]["code"] == "INVALID_DIRECTION"
        assert errors[0]["validDirections"] == ["ASC", "DESC"]


class TestValidateListingInput:

    def test_valid_input(self):
        validate_listing_input("articles", ARTICLES, {"title": "x"}, {"title": "ASC"}, "search text")

    def test_filter_errors_take_precedence(self):
        with pytest.raises(InvalidFilterSpec) as exc:
            validate_listing_input("articles", ARTICLES, {"nope": 1}, {"nope": "ASC"})

        assert not isinstance(exc.value, InvalidSortSpec)
        assert [e["code"] for e in exc.value.errors] == ["UNKNOWN_FIELD", "NOT_SORTABLE"]

    def test_sort_errors_alone(self):
        with pytest.raises(InvalidSortSpec) as exc:
            validate_listing_input("tags", TAGS, {}, {"hub": "ASC"})
        assert exc.value.errors[0]["path"] == "sorts.hub"

    def test_search_must_be_text(self):
        with pytest.raises(InvalidFilterSpec) as exc:
            validate_listing_input("articles", ARTICLES, {}, {}, search=42)
        assert exc.value.errors[0]["code"] == "INVALID_SEARCH"

    @pytest.mark.parametrize("search", [None, False, ""])
    def test_search_off(self, search):
        validate_listing_input("articles", ARTICLES, {}, {}, search=search)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            validate_listing_input("tags", TAGS, {"nope": 1}, {})


class TestEntityRegistry:

    def test_lookup(self):
        assert get_entity_config("articles") is ARTICLES
        assert get_entity_config("tags") is TAGS
        assert get_entity_config("users") is None
