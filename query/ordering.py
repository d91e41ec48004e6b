"""
Order Compiler

Builds ORDER BY fragments. Caller sorts keep their precedence; a default
dimension is appended when the caller did not sort on it, the search
rank follows every sort key, and a unique key closes the order so pages
stay stable across offsets.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidSortSpec

DIRECTIONS = ("ASC", "DESC")


@dataclass(frozen=True)
class SortDescriptor:
    """A column expression and its sort direction."""
    column: str
    direction: str = "ASC"


def normalize_direction(direction, field: str = "?") -> str:
    """Map caller input ('asc', 'DESC', ...) to ASC / DESC."""
    if isinstance(direction, str) and direction.upper() in DIRECTIONS:
        return direction.upper()
    raise InvalidSortSpec(
        f"{field}: Invalid sort direction {direction!r}",
        [{
            "code": "INVALID_DIRECTION",
            "path": f"sorts.{field}",
            "message": f"Invalid sort direction {direction!r}",
            "validDirections": list(DIRECTIONS),
        }],
    )


def compile_order(
    descriptors: list[SortDescriptor],
    default: Optional[SortDescriptor] = None,
    rank: Optional[str] = None,
    unique: Optional[str] = None,
) -> str:
    """
    Build the ORDER BY body (without the keyword).

    Args:
        descriptors: Caller sorts, first entry is the primary key
        default: Natural dimension of the entity, appended unless already sorted on
        rank: Search rank expression, appended DESC after all sort keys
        unique: Unique column (the root id), appended ASC unless already sorted on
    """
    orders = list(descriptors)

    if default is not None and not any(d.column == default.column for d in orders):
        orders.append(default)

    if rank:
        orders.append(SortDescriptor(column=rank, direction="DESC"))

    if unique and not any(d.column == unique for d in orders):
        orders.append(SortDescriptor(column=unique, direction="ASC"))

    if not orders:
        raise InvalidSortSpec("ORDER BY requires at least one sort key")

    return ", ".join(f"{d.column} {normalize_direction(d.direction)}" for d in orders)
