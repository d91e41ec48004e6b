"""
Entity Configuration Registry

Declares, per listable entity, the root table, projected columns, the join
graph, the fan-out-safe aggregate expressions and which caller fields can be
filtered or sorted (and at which clause stage).
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from models import Article, HubTag, Tag


def qualify(alias: str, column: str) -> str:
    """Quote an alias.column reference."""
    return f'"{alias}"."{column}"'


@dataclass
class FieldDef:
    """A caller-facing field and how it is filtered / sorted."""
    column: str  # Qualified SQL expression the filter applies to
    filter: Optional[str] = None  # id, ids, text, numeric, date; None = not filterable
    sortable: bool = False
    sort_column: Optional[str] = None  # Sort expression when it differs from column
    stage: str = "where"  # where, having (aggregate), join (ON clause of `join`)
    join: Optional[str] = None  # Alias of the JoinDef carrying a join-stage filter


@dataclass
class ThroughDef:
    """Junction table between the root and a many-valued association."""
    table: str
    alias: str
    local: str  # Junction FK to the root entity
    target: str  # Junction FK to the joined table


@dataclass
class JoinDef:
    """One association in the join graph."""
    alias: str
    table: str
    nested: str  # Output attribute on the root entity (author, hubs, tags)
    columns: list[str]  # Columns projected as "<alias>.<column>"
    many: bool = False
    join_type: str = "INNER JOIN"
    key: str = "id"  # Primary key of the joined table
    local_key: str = ""  # Column on the root pointing at key (direct joins)
    through: Optional[ThroughDef] = None

    def render(self, root_id: str, extra: str = "") -> str:
        """Render the JOIN clause against a root id expression, with an optional ON suffix."""
        target = f'"{self.table}" AS "{self.alias}"'
        if self.through:
            jt = self.through
            junction = f'"{jt.table}" AS "{jt.alias}"'
            on = f"{qualify(jt.alias, jt.local)} = {root_id}"
            inner = f"{target} ON {qualify(self.alias, self.key)} = {qualify(jt.alias, jt.target)}"
            sql = f"{self.join_type} ({junction} INNER JOIN {inner}) ON {on}"
        else:
            root_alias = root_id.split(".")[0]
            on = f"{root_alias}.\"{self.local_key}\" = {qualify(self.alias, self.key)}"
            sql = f"{self.join_type} {target} ON {on}"
        return f"{sql} {extra}".rstrip()

    @property
    def id_column(self) -> str:
        return qualify(self.alias, self.key)

    def projections(self) -> list[str]:
        return [f'{qualify(self.alias, c)} AS "{self.alias}.{c}"' for c in self.columns]


@dataclass
class AggregateDef:
    """
    A per-root aggregate, evaluated in a LATERAL subquery that yields exactly
    one row per root, so join fan-out never multiplies it.
    """
    name: str
    expression: str  # e.g. COUNT(DISTINCT "ArticleAnswer"."id")
    source: str  # FROM body of the subquery
    correlation: str  # Condition tying the source to the root; {root} is the root id

    def render(self, root_id: str) -> str:
        return (
            f"LEFT OUTER JOIN LATERAL (SELECT {self.expression} AS \"value\" "
            f"FROM {self.source} WHERE {self.correlation.format(root=root_id)}) "
            f"AS \"{self.name}\" ON TRUE"
        )

    @property
    def column(self) -> str:
        return qualify(self.name, "value")


@dataclass
class EntityConfig:
    """Complete configuration for a listable entity."""
    table: str
    alias: str
    columns: list[str]  # Root scalar columns projected under their own names
    fields: dict[str, FieldDef]
    model: type
    joins: list[JoinDef] = field(default_factory=list)
    aggregates: list[AggregateDef] = field(default_factory=list)
    default_sort: Optional[tuple[str, str]] = None  # (field, direction)
    optional_columns: tuple[str, ...] = ()  # Projected only when requested
    tsv: Optional[str] = None  # Search vector column
    key: str = "id"

    @property
    def root_id(self) -> str:
        return qualify(self.alias, self.key)

    def column(self, name: str) -> str:
        return qualify(self.alias, name)

    @property
    def single_joins(self) -> list[JoinDef]:
        return [j for j in self.joins if not j.many]

    @property
    def many_joins(self) -> list[JoinDef]:
        return [j for j in self.joins if j.many]

    @property
    def filterable(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.filter]

    @property
    def sortable(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.sortable]


# =============================================================================
# Articles
# =============================================================================

ARTICLES = EntityConfig(
    table="Articles",
    alias="Article",
    columns=["id", "title", "abstract", "createdAt"],
    optional_columns=("abstract",),
    tsv=qualify("Article", "tsv"),
    model=Article,
    joins=[
        JoinDef(
            alias="User",
            table="Users",
            nested="author",
            columns=["id", "displayName", "hash"],
            local_key="author",
        ),
        JoinDef(
            alias="Hub",
            table="Hubs",
            nested="hubs",
            columns=["id", "name"],
            many=True,
            through=ThroughDef(table="ArticlesHubs", alias="ArticleHub", local="article", target="hub"),
        ),
        JoinDef(
            alias="Tag",
            table="Tags",
            nested="tags",
            columns=["id", "name", "hub"],
            many=True,
            through=ThroughDef(table="ArticlesTags", alias="ArticleTag", local="article", target="tag"),
        ),
    ],
    aggregates=[
        AggregateDef(
            name="answers",
            expression='COUNT(DISTINCT "ArticleAnswer"."id")',
            source='"ArticlesAnswers" AS "ArticleAnswer"',
            correlation='"ArticleAnswer"."article" = {root}',
        ),
        AggregateDef(
            name="votes",
            expression='COALESCE(SUM("ArticleVote"."vote"), 0)',
            source='"ArticlesVotes" AS "ArticleVote"',
            correlation='"ArticleVote"."article" = {root}',
        ),
    ],
    fields={
        "id": FieldDef(column=qualify("Article", "id"), filter="id"),
        "title": FieldDef(column=qualify("Article", "title"), filter="text", sortable=True),
        "author": FieldDef(
            column=qualify("User", "id"), filter="id", sortable=True,
            sort_column=qualify("User", "displayName"), stage="join", join="User",
        ),
        "hubs": FieldDef(column=qualify("Hub", "id"), filter="ids", stage="join", join="Hub"),
        "tags": FieldDef(column=qualify("Tag", "id"), filter="ids", stage="join", join="Tag"),
        "answers": FieldDef(column=qualify("answers", "value"), filter="numeric", sortable=True, stage="having"),
        "votes": FieldDef(column=qualify("votes", "value"), filter="numeric", sortable=True, stage="having"),
        "createdAt": FieldDef(column=qualify("Article", "createdAt"), filter="date", sortable=True),
    },
    default_sort=("createdAt", "DESC"),
)


# =============================================================================
# Tags
# =============================================================================

TAGS = EntityConfig(
    table="Tags",
    alias="Tag",
    columns=["id", "name", "hub"],
    tsv=qualify("Tag", "tsv"),
    model=Tag,
    aggregates=[
        AggregateDef(
            name="articles",
            expression='COUNT(DISTINCT "Article"."id")',
            source=(
                '"ArticlesTags" AS "ArticleTag" '
                'INNER JOIN "Articles" AS "Article" ON "Article"."id" = "ArticleTag"."article"'
            ),
            correlation='"ArticleTag"."tag" = {root}',
        ),
    ],
    fields={
        "id": FieldDef(column=qualify("Tag", "id"), filter="id"),
        "name": FieldDef(column=qualify("Tag", "name"), filter="text", sortable=True),
        "hub": FieldDef(column=qualify("Tag", "hub"), filter="id"),
        "articles": FieldDef(column=qualify("articles", "value"), filter="numeric", sortable=True, stage="having"),
    },
    default_sort=("articles", "DESC"),
)

# Tags of a single hub, in the compact {id, name} shape
HUB_TAGS = replace(TAGS, columns=["id", "name"], model=HubTag)


ENTITIES: dict[str, EntityConfig] = {
    "articles": ARTICLES,
    "tags": TAGS,
}


def get_entity_config(entity_name: str) -> Optional[EntityConfig]:
    """Get entity config by name, or None if not found."""
    return ENTITIES.get(entity_name)


def get_entity_names() -> list[str]:
    """Get all listable entity names."""
    return list(ENTITIES.keys())
