"""
Listing models
Entities returned by the listing engine, using Pydantic for validation and serialization
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict


class ListingModel(BaseModel):
    """Immutable output entity"""
    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        """JSON-ready dict, omitting fields that were not projected"""
        return self.model_dump(mode="json", exclude_none=True)


# ============================================================================
# Nested associations
# ============================================================================

class Author(ListingModel):
    id: int
    displayName: Optional[str] = None
    hash: Optional[str] = None


class Hub(ListingModel):
    id: int
    name: str


class ArticleTag(ListingModel):
    id: int
    name: str
    hub: Optional[int] = None


# ============================================================================
# Root entities
# ============================================================================

class Article(ListingModel):
    """One article with its author, hubs, tags and answer/vote aggregates"""
    id: int
    title: str
    abstract: Optional[str] = None  # only projected in extended listings
    createdAt: datetime
    author: Optional[Author] = None
    hubs: List[Hub] = []
    tags: List[ArticleTag] = []
    answers: int = 0
    votes: int = 0


class Tag(ListingModel):
    """One tag with the number of articles carrying it"""
    id: int
    name: str
    hub: Optional[int] = None
    articles: int = 0


class HubTag(ListingModel):
    """Compact tag shape used when listing the tags of a hub"""
    id: int
    name: str
