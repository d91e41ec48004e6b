"""
Tags Listing

Tags with the number of distinct articles carrying them. Tags without
articles are listed with articles=0.
"""

from typing import Any, Optional

from config import ListingConfig

from .entities import HUB_TAGS, TAGS
from .listing import PaginatedList
from .ordering import compile_order
from .predicates import Params, compile_predicates, parse_filter


class Tags(PaginatedList):
    """Filtered, sorted, searchable page of tags."""

    entity = TAGS
    name = "tags"

    def where(self, params: Params) -> str:
        wheres = self.descriptors("where")
        search = self.search_descriptor()
        if search:
            wheres.append(search)
        return compile_predicates(wheres, params)

    def having(self, params: Params) -> str:
        return compile_predicates(self.descriptors("having"), params)

    def order(self, params: Params) -> str:
        return compile_order(
            self.sort_descriptors(),
            default=self.default_sort(),
            rank=self.rank(params),
            unique=self.entity.root_id,
        )


class TagsInHub(Tags):
    """Tags of one hub, most used first, as {id, name}."""

    entity = HUB_TAGS
    name = "hub_tags"

    def __init__(self, db, hub_id: Any, limit: Any = None, config: Optional[ListingConfig] = None):
        # A missing hub would otherwise drop the filter and list every tag
        hub_id = parse_filter("id", hub_id, field="hub").value
        super().__init__(
            db,
            filters={"hub": hub_id},
            sorts={"articles": "DESC"},
            limit=limit,
            config=config,
        )
        self.hub_id = hub_id
