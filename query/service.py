"""
Listing Service

Entry point for callers: takes the raw input mapping
({limit, offset, filters, sorts, search}), runs the matching listing and
returns {data, total}.
"""

import logging
from typing import Any, Optional

from config import ListingConfig

from .articles import Articles
from .errors import InvalidFilterSpec
from .entities import get_entity_names
from .tags import Tags

logger = logging.getLogger(__name__)

LISTINGS = {
    "articles": Articles,
    "tags": Tags,
}


def _mapping(value: Any, name: str) -> dict:
    # Callers send false / null for "no filters" / "no sorts"
    if not value:
        return {}
    if not isinstance(value, dict):
        raise InvalidFilterSpec(
            f"{name} must be an object",
            [{"code": "INVALID_INPUT", "path": name, "message": f"{name} must be an object"}],
        )
    return value


async def list_entities(
    db,
    entity: str,
    arguments: dict[str, Any],
    extended: bool = False,
    config: Optional[ListingConfig] = None,
) -> dict[str, Any]:
    """
    List one page of an entity.

    Args:
        db: Execution handle exposing `async fetch(query, *args)`
        entity: "articles" or "tags"
        arguments: Caller input mapping
        extended: Include article abstracts

    Returns:
        {"data": tuple of models, "total": int}
    """
    listing_cls = LISTINGS.get(entity)
    if listing_cls is None:
        raise InvalidFilterSpec(
            f"Unknown entity '{entity}'",
            [{"code": "UNKNOWN_ENTITY", "path": "entity", "message": f"Unknown entity '{entity}'",
              "validEntities": get_entity_names()}],
        )

    kwargs = dict(
        filters=_mapping(arguments.get("filters"), "filters"),
        sorts=_mapping(arguments.get("sorts"), "sorts"),
        limit=arguments.get("limit"),
        offset=arguments.get("offset"),
        search=arguments.get("search") or False,
        config=config,
    )
    if listing_cls is Articles:
        kwargs["extended"] = extended

    listing = listing_cls(db, **kwargs)
    await listing.set_data()

    return {"data": listing.data, "total": listing.total}
