"""Query construction for listings, dropdowns and single-record fetches.

A listing is described by a QuerySpec and turned into two queries that share
one join set and one predicate: the bounded page query and the unbounded
count query. Keeping both on the same predicate is what makes `total`
agree with `items`.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, inspect
from sqlalchemy.orm import Query, Session, aliased, contains_eager, joinedload
from sqlalchemy.orm.util import AliasedClass
from sqlalchemy.sql.elements import ColumnElement

from .descriptors import EntityDescriptor, SearchField
from .pagination import Window
from .search import compose_keyword_predicate

DROPDOWN_LIMIT = 5


@dataclass
class QuerySpec:
    """In-flight description of one listing request."""
    descriptor: EntityDescriptor
    window: Window
    keyword: Optional[str] = None
    # Hard filters ANDed with the keyword block (owner scope, pinned relation).
    filters: List[ColumnElement] = field(default_factory=list)
    # Relation already pinned by a filter; its fields are left out of the keyword search.
    exclude_relation: Optional[str] = None
    # None = full records; otherwise the column names to return.
    projection: Optional[Tuple[str, ...]] = None


def relation_aliases(descriptor: EntityDescriptor) -> Dict[str, AliasedClass]:
    """One alias per declared relation, so two relations to the same table never collide."""
    mapped = inspect(descriptor.model).relationships
    return {
        relation.name: aliased(mapped[relation.name].mapper.class_, name=f"rel_{relation.name}")
        for relation in descriptor.relations
    }


def sort_order(descriptor: EntityDescriptor) -> Tuple[ColumnElement, ColumnElement]:
    """Newest first; equal creation times keep insertion order."""
    model = descriptor.model
    return (model.created_at.desc(), model.id.asc())


def _apply_joins(query: Query, descriptor: EntityDescriptor, aliases: Dict[str, AliasedClass], eager: bool) -> Query:
    model = descriptor.model
    for relation in descriptor.relations:
        path = getattr(model, relation.name).of_type(aliases[relation.name])
        query = query.join(path)  # inner join: records lacking the relation are excluded
        if eager:
            query = query.options(contains_eager(path))
    return query


def build_predicate(spec: QuerySpec, aliases: Dict[str, AliasedClass]) -> Optional[ColumnElement]:
    """
    Combine hard filters with the keyword block: filters AND (kw1 OR kw2 ...).

    The keyword block is a single OR expression, so it can never loosen a
    hard filter.
    """
    model = spec.descriptor.model

    def resolve(search_field: SearchField):
        if search_field.relation is None:
            return getattr(model, search_field.attribute)
        return getattr(aliases[search_field.relation], search_field.attribute)

    keyword_clause = compose_keyword_predicate(
        spec.keyword,
        spec.descriptor.iter_search_fields(exclude_relation=spec.exclude_relation),
        resolve,
    )
    clauses = list(spec.filters)
    if keyword_clause is not None:
        clauses.append(keyword_clause)
    if not clauses:
        return None
    return and_(*clauses)


def build_listing_queries(session: Session, spec: QuerySpec) -> Tuple[Query, Query]:
    """
    Build the page query and the count query for a listing.

    Returns:
        (page_query, count_query). The page query is ordered but not yet
        offset/limited; the window is applied by the pagination engine.
    """
    descriptor = spec.descriptor
    model = descriptor.model
    aliases = relation_aliases(descriptor)
    predicate = build_predicate(spec, aliases)

    page_query = _apply_joins(session.query(model), descriptor, aliases, eager=True)
    count_query = _apply_joins(session.query(model.id), descriptor, aliases, eager=False)
    if predicate is not None:
        page_query = page_query.filter(predicate)
        count_query = count_query.filter(predicate)

    page_query = page_query.order_by(*sort_order(descriptor))
    return page_query, count_query


def build_dropdown_query(session: Session, spec: QuerySpec) -> Query:
    """
    Projected, capped query for reference pickers.

    The keyword is matched against the projected text columns; when none of
    them is text, the kind's local searchable fields are used instead.
    """
    descriptor = spec.descriptor
    model = descriptor.model
    fields: Sequence[str] = spec.projection or descriptor.dropdown_fields

    text_fields = [name for name in fields if descriptor.is_text_column(name)]
    search_fields = text_fields or list(descriptor.search_fields)

    keyword_clause = compose_keyword_predicate(
        spec.keyword,
        [SearchField(attribute=name) for name in search_fields],
        lambda f: getattr(model, f.attribute),
    )

    query = session.query(*[getattr(model, name) for name in fields])
    clauses = list(spec.filters)
    if keyword_clause is not None:
        clauses.append(keyword_clause)
    if clauses:
        query = query.filter(and_(*clauses))
    return query.order_by(*sort_order(descriptor)).limit(DROPDOWN_LIMIT)


def build_get_query(session: Session, descriptor: EntityDescriptor, filters: Sequence[ColumnElement]) -> Query:
    """Single-record fetch with related records loaded alongside."""
    model = descriptor.model
    query = session.query(model).filter(*filters)
    for relation in descriptor.relations:
        query = query.options(joinedload(getattr(model, relation.name)))
    return query
