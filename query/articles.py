"""
Articles Listing

Articles with their author, hubs and tags, plus answer count and vote sum.

Join graph:
- Users: inner join (author filter rides on its ON clause)
- ArticlesHubs → Hubs, ArticlesTags → Tags: inner joins (hub / tag filters on ON)
- answers / votes: one-row LATERAL aggregates, so articles without either count as 0
"""

from typing import Any, Optional

from config import ListingConfig

from .entities import ARTICLES
from .listing import PaginatedList
from .ordering import compile_order
from .predicates import Params, compile_predicates


class Articles(PaginatedList):
    """Filtered, sorted, searchable page of articles."""

    entity = ARTICLES
    name = "articles"

    def __init__(
        self,
        db,
        filters: Optional[dict] = None,
        sorts: Optional[dict] = None,
        limit: Any = None,
        offset: Any = None,
        search: Any = False,
        extended: bool = False,
        config: Optional[ListingConfig] = None,
    ):
        super().__init__(db, filters=filters, sorts=sorts, limit=limit, offset=offset, search=search, config=config)
        self.extended = extended

    @property
    def include(self) -> tuple[str, ...]:
        return ("abstract",) if self.extended else ()

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
