"""
Result Denormalizer

Folds flattened join rows (one per root × hub × tag ...) back into one
entity per root id, nesting single-valued associations and de-duplicating
many-valued ones. Pure: needs no connection and returns a new tuple.
"""

import logging
from typing import Any, Iterable, Mapping

from .entities import EntityConfig, JoinDef
from .errors import DenormalizationInconsistency

logger = logging.getLogger(__name__)


def _value(row: Mapping[str, Any], key: str) -> Any:
    try:
        return row[key]
    except KeyError:
        raise DenormalizationInconsistency(
            f"Row is missing column '{key}' (has: {sorted(row.keys())})"
        ) from None


def _nested(row: Mapping[str, Any], join: JoinDef) -> dict | None:
    """Pick the "<alias>.<column>" values of one association; None when its id is NULL."""
    nested = {c: _value(row, f"{join.alias}.{c}") for c in join.columns}
    if nested.get(join.key) is None:
        return None
    return nested


def denormalize(rows: Iterable[Mapping[str, Any]], entity: EntityConfig, include: Iterable[str] = ()) -> tuple:
    """
    Build one model instance per root id, in first-seen row order.

    Args:
        rows: Page statement rows (asyncpg Records or dicts)
        entity: Entity configuration describing the row shape
        include: Optional columns (e.g. "abstract") that were projected

    Raises:
        DenormalizationInconsistency: a declared column is missing, or the
            single-valued association differs between rows of the same root
    """
    include = set(include)
    columns = [c for c in entity.columns if c not in entity.optional_columns or c in include]

    items: dict[Any, dict] = {}
    seen: dict[tuple[Any, str], set] = {}

    for raw in rows:
        row = dict(raw)
        root_id = _value(row, entity.key)
        item = items.get(root_id)

        if item is None:
            item = {c: _value(row, c) for c in columns}
            for join in entity.single_joins:
                item[join.nested] = _nested(row, join)
            for join in entity.many_joins:
                item[join.nested] = []
                seen[(root_id, join.nested)] = set()
            # Aggregates are fan-out safe at the source: take them once per root
            for aggregate in entity.aggregates:
                value = _value(row, aggregate.name)
                item[aggregate.name] = int(value) if value is not None else 0
            items[root_id] = item
        else:
            for join in entity.single_joins:
                nested = _nested(row, join)
                current = item[join.nested]
                current_id = current[join.key] if current else None
                nested_id = nested[join.key] if nested else None
                if current_id != nested_id:
                    raise DenormalizationInconsistency(
                        f"{entity.alias} {root_id} has conflicting {join.nested} ids "
                        f"{current_id!r} and {nested_id!r}"
                    )

        for join in entity.many_joins:
            nested = _nested(row, join)
            if nested is None:
                continue
            ids = seen[(root_id, join.nested)]
            if nested[join.key] not in ids:
                ids.add(nested[join.key])
                item[join.nested].append(nested)

    logger.debug(f"Denormalized rows into {len(items)} {entity.alias} entities")
    return tuple(entity.model.model_validate(item) for item in items.values())
