"""
Tests for the order compiler: precedence, default tie-break, rank tie-break, unique closing key.
"""

import pytest

from query.errors import InvalidSortSpec
from query.ordering import SortDescriptor, compile_order, normalize_direction

CREATED = SortDescriptor('"Article"."createdAt"', "DESC")
RANK = 'TS_RANK("Article"."tsv", plainto_tsquery($1))'


class TestCompileOrder:

    def test_caller_precedence_is_kept_and_default_appended(self):
        order = compile_order(
            [SortDescriptor('"Article"."title"', "asc"), SortDescriptor('"votes"."value"', "DESC")],
            default=CREATED,
        )
        assert order == '"Article"."title" ASC, "votes"."value" DESC, "Article"."createdAt" DESC'

    def test_default_alone_when_no_sorts(self):
        assert compile_order([], default=CREATED) == '"Article"."createdAt" DESC'

    def test_default_not_duplicated_when_caller_sorts_on_it(self):
        order = compile_order([SortDescriptor('"Article"."createdAt"', "ASC")], default=CREATED)
        assert order == '"Article"."createdAt" ASC'

    def test_rank_is_always_last(self):
        order = compile_order([SortDescriptor('"Article"."title"', "ASC")], default=CREATED, rank=RANK)
        assert order.endswith(f"{RANK} DESC")
        assert order.index('"Article"."createdAt" DESC') < order.index(RANK)

    def test_rank_after_caller_sort_on_default_dimension(self):
        order = compile_order([CREATED], default=CREATED, rank=RANK)
        assert order == f'"Article"."createdAt" DESC, {RANK} DESC'

    def test_unique_key_closes_the_order(self):
        order = compile_order([], default=CREATED, rank=RANK, unique='"Article"."id"')
        assert order == f'"Article"."createdAt" DESC, {RANK} DESC, "Article"."id" ASC'

    def test_unique_key_not_repeated(self):
        order = compile_order([SortDescriptor('"Tag"."id"', "DESC")], unique='"Tag"."id"')
        assert order == '"Tag"."id" DESC'

    def test_nothing_to_order_by_raises(self):
        with pytest.raises(InvalidSortSpec):
            compile_order([])


class TestDirections:

    @pytest.mark.parametrize("raw,expected", [("asc", "ASC"), ("DESC", "DESC"), ("Desc", "DESC")])
    def test_directions_are_normalized(self, raw, expected):
        assert normalize_direction(raw) == expected

    @pytest.mark.parametrize("raw", ["up", "", None, 1])
    def test_bad_direction_raises(self, raw):
        with pytest.raises(InvalidSortSpec) as exc:
            normalize_direction(raw, "title")
        assert exc.value.errors[0]["code"] == "INVALID_DIRECTION"
