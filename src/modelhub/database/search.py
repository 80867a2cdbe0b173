"""Keyword search composition: OR-combined prefix matches over searchable fields."""

from typing import Callable, Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from .descriptors import SearchField


def normalize_keyword(keyword: Optional[str]) -> Optional[str]:
    """Treat None and the empty string alike: no keyword."""
    if keyword is None or keyword == "":
        return None
    return keyword


def prefix_match(column, keyword: str) -> ColumnElement:
    """
    `column LIKE 'keyword%'` with LIKE wildcards in the keyword escaped.

    Case sensitivity is whatever the store's collation says.
    """
    return column.startswith(keyword, autoescape=True)


def compose_keyword_predicate(
    keyword: Optional[str],
    fields: Iterable[SearchField],
    resolve: Callable[[SearchField], object],
) -> Optional[ColumnElement]:
    """
    Build the keyword predicate for a listing.

    Args:
        keyword: Search keyword; None or "" disables filtering
        fields: Searchable fields, local or on joined relations
        resolve: Maps a SearchField to the column expression to match
            (the builder supplies aliased columns for joined relations)

    Returns:
        A single OR expression, or None when there is nothing to filter on
    """
    keyword = normalize_keyword(keyword)
    if keyword is None:
        return None

    clauses = [prefix_match(resolve(f), keyword) for f in fields]
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return or_(*clauses)
