"""
Listing query engine

Builds parameterized PostgreSQL for paginated, filtered, sorted and searched
listings of articles and tags, and folds the joined rows into nested entities.
"""

from .entities import ENTITIES, get_entity_config
from .errors import (
    DenormalizationInconsistency,
    InvalidFilterSpec,
    InvalidSortSpec,
    ListingError,
    StatementExecutionError,
)
from .listing import PaginatedList
from .articles import Articles
from .tags import Tags, TagsInHub
from .denormalize import denormalize
from .service import list_entities

__all__ = [
    'ENTITIES',
    'get_entity_config',
    'ListingError',
    'InvalidFilterSpec',
    'InvalidSortSpec',
    'DenormalizationInconsistency',
    'StatementExecutionError',
    'PaginatedList',
    'Articles',
    'Tags',
    'TagsInHub',
    'denormalize',
    'list_entities',
]
