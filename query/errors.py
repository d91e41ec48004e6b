"""
Listing Errors

Exceptions raised by the listing engine. Backend failures are not wrapped:
asyncpg's own exceptions reach the caller unchanged, re-exported here as
StatementExecutionError so callers have one import for the whole taxonomy.
"""

from typing import Optional

import asyncpg

StatementExecutionError = asyncpg.PostgresError


class ListingError(Exception):
    """Base class for listing engine errors."""


class InvalidFilterSpec(ListingError, ValueError):
    """A filter, sort or search input is malformed or unsupported."""

    def __init__(self, message: str, errors: Optional[list[dict]] = None):
        super().__init__(message)
        self.errors = errors or []


class InvalidSortSpec(InvalidFilterSpec):
    """A sort targets an unsortable field or uses an unknown direction."""


class DenormalizationInconsistency(ListingError):
    """A result row does not match the declared entity shape."""
