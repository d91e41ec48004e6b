"""
Input Validators

Validates listing input (filter fields, sort fields and directions, search)
and raises with structured errors naming the valid alternatives.
Filter values themselves are validated when predicates are compiled.
"""

from typing import Any

from .entities import EntityConfig
from .errors import InvalidFilterSpec, InvalidSortSpec
from .ordering import DIRECTIONS


def _error(code: str, path: str, message: str, **extra) -> dict:
    """Build a structured validation error."""
    err = {"code": code, "path": path, "message": message}
    err.update(extra)
    return err


def collect_filter_errors(entity_name: str, entity: EntityConfig, filters: dict[str, Any]) -> list[dict]:
    errors = []
    for field_name, value in filters.items():
        if value is None:
            continue
        field_def = entity.fields.get(field_name)
        if field_def is None or not field_def.filter:
            errors.append(_error(
                "UNKNOWN_FIELD", f"filters.{field_name}",
                f"Cannot filter '{entity_name}' by unknown field '{field_name}'",
                validFields=entity.filterable,
            ))
    return errors


def collect_sort_errors(entity_name: str, entity: EntityConfig, sorts: dict[str, Any]) -> list[dict]:
    errors = []
    for field_name, direction in sorts.items():
        if direction is None:
            continue
        field_def = entity.fields.get(field_name)
        if field_def is None or not field_def.sortable:
            errors.append(_error(
                "NOT_SORTABLE", f"sorts.{field_name}",
                f"Cannot sort '{entity_name}' by '{field_name}'",
                validSortFields=entity.sortable,
            ))
        elif not isinstance(direction, str) or direction.upper() not in DIRECTIONS:
            errors.append(_error(
                "INVALID_DIRECTION", f"sorts.{field_name}",
                f"Invalid sort direction {direction!r}",
                validDirections=list(DIRECTIONS),
            ))
    return errors


def validate_listing_input(
    entity_name: str,
    entity: EntityConfig,
    filters: dict[str, Any],
    sorts: dict[str, Any],
    search: Any = False,
):
    """
    Validate listing input.

    Raises:
        InvalidFilterSpec: unknown filter fields or non-text search
        InvalidSortSpec: unsortable fields or bad directions (when filters are valid)
    """
    filter_errors = collect_filter_errors(entity_name, entity, filters)
    if search not in (None, False) and not isinstance(search, str):
        filter_errors.append(_error("INVALID_SEARCH", "search", f"Search must be text, got {search!r}"))

    sort_errors = collect_sort_errors(entity_name, entity, sorts)

    if filter_errors:
        raise InvalidFilterSpec(
            f"Invalid {entity_name} listing input: {filter_errors[0]['message']}",
            filter_errors + sort_errors,
        )
    if sort_errors:
        raise InvalidSortSpec(
            f"Invalid {entity_name} listing input: {sort_errors[0]['message']}",
            sort_errors,
        )
