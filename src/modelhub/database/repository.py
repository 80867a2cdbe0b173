"""Generic scoped repository: one implementation for every entity kind.

The repository is constructed with an explicit session and a descriptor;
it holds no other state. Owner-scoped kinds require the acting owner id on
every call, and a record owned by someone else looks exactly like a missing
one.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import NotFoundError, StoreFailure
from ..utils.logging import get_logger
from ..utils.time import utc_now_after, utc_now_z
from .descriptors import EntityDescriptor
from .pagination import PageSlice, Window, coerce_window, fetch_page
from .query_builder import (
    DROPDOWN_LIMIT,
    QuerySpec,
    build_dropdown_query,
    build_get_query,
    build_listing_queries,
)

logger = get_logger(__name__)


class EntityRepository:
    def __init__(self, session: Session, descriptor: EntityDescriptor):
        self.session = session
        self.descriptor = descriptor

    @property
    def kind(self) -> str:
        return self.descriptor.kind.value

    # ------------------------------------------------------------------
    # scoping helpers
    # ------------------------------------------------------------------

    def _scope_filters(self, owner_id: Optional[Any]) -> List:
        """Owner predicate for scoped kinds; empty for globally visible ones."""
        if not self.descriptor.is_owner_scoped:
            return []
        if owner_id is None:
            raise ValueError(f"owner_id is required for owner-scoped entity '{self.kind}'")
        return [getattr(self.descriptor.model, self.descriptor.owner_key) == owner_id]

    def _check_fields(self, names: Iterable[str], allowed: Iterable[str], purpose: str) -> None:
        allowed_set = set(allowed)
        unknown = sorted(set(names) - allowed_set)
        if unknown:
            raise ValueError(
                f"{self.kind}: unsupported {purpose} field(s): {', '.join(unknown)}"
            )

    def _store_failure(self, operation: str, exc: SQLAlchemyError) -> StoreFailure:
        self.session.rollback()
        detail = str(getattr(exc, "orig", None) or exc)
        logger.error(f"{operation} {self.kind} failed: {detail}")
        return StoreFailure(operation, self.kind, detail)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def find(self, record_id: int, owner_id: Optional[Any] = None):
        """Return the row or None (no error)."""
        filters = [self.descriptor.model.id == record_id, *self._scope_filters(owner_id)]
        try:
            return build_get_query(self.session, self.descriptor, filters).first()
        except SQLAlchemyError as exc:
            raise self._store_failure("get", exc) from exc

    def get(self, record_id: int, owner_id: Optional[Any] = None):
        """
        Get one record by id.

        Raises:
            NotFoundError: If absent or owned by someone else
            StoreFailure: If the store rejects the query
        """
        row = self.find(record_id, owner_id)
        if row is None:
            raise NotFoundError(self.kind, record_id)
        return row

    def _run_listing(self, spec: QuerySpec) -> PageSlice:
        try:
            page_query, count_query = build_listing_queries(self.session, spec)
            return fetch_page(page_query, count_query, spec.window)
        except SQLAlchemyError as exc:
            raise self._store_failure("list", exc) from exc

    def list(
        self,
        skip: Any = 0,
        take: Any = 10,
        keyword: Optional[str] = None,
        owner_id: Optional[Any] = None,
    ) -> PageSlice:
        """
        List records newest first, optionally filtered by keyword.

        The keyword prefix-matches any local searchable field or any
        searchable field of a joined relation.
        """
        spec = QuerySpec(
            descriptor=self.descriptor,
            window=coerce_window(skip, take),
            keyword=keyword,
            filters=self._scope_filters(owner_id),
        )
        return self._run_listing(spec)

    def list_by_relation(
        self,
        relation: str,
        relation_id: Any,
        skip: Any = 0,
        take: Any = 10,
        keyword: Optional[str] = None,
        owner_id: Optional[Any] = None,
    ) -> PageSlice:
        """
        List records whose `relation` points at `relation_id`.

        The keyword searches local fields and the other relations; the pinned
        relation is already fixed, so its fields are not searched.
        """
        rel = self.descriptor.relation(relation)
        pin = getattr(self.descriptor.model, rel.foreign_key) == relation_id
        spec = QuerySpec(
            descriptor=self.descriptor,
            window=coerce_window(skip, take),
            keyword=keyword,
            filters=[pin, *self._scope_filters(owner_id)],
            exclude_relation=rel.name,
        )
        return self._run_listing(spec)

    def list_dropdown(
        self,
        fields: Optional[Iterable[str]] = None,
        keyword: Optional[str] = None,
        owner_id: Optional[Any] = None,
    ) -> List[Dict[str, Any]]:
        """Projected list for reference pickers, never more than five entries."""
        projection = tuple(fields) if fields else self.descriptor.dropdown_fields
        self._check_fields(projection, self.descriptor.columns, "dropdown")
        spec = QuerySpec(
            descriptor=self.descriptor,
            window=Window(skip=0, take=DROPDOWN_LIMIT),
            keyword=keyword,
            filters=self._scope_filters(owner_id),
            projection=projection,
        )
        try:
            rows = build_dropdown_query(self.session, spec).all()
        except SQLAlchemyError as exc:
            raise self._store_failure("dropdown", exc) from exc
        return [row._asdict() for row in rows]

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def create(self, attributes: Dict[str, Any], owner_id: Optional[Any] = None):
        """
        Insert a new record; both timestamps are set to the same instant.

        Relation references are stored as given; a reference to a missing
        record surfaces as a StoreFailure from the store's foreign-key check.
        """
        self._check_fields(attributes.keys(), self.descriptor.writable_fields, "writable")
        scope = self._scope_filters(owner_id)

        now = utc_now_z()
        row = self.descriptor.model(**attributes, created_at=now, updated_at=now)
        if scope:
            setattr(row, self.descriptor.owner_key, owner_id)

        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._store_failure("create", exc) from exc

        logger.debug(f"Created {self.kind} {row.id}")
        return row

    def update(self, record_id: int, attributes: Dict[str, Any], owner_id: Optional[Any] = None):
        """
        Merge attributes over an existing record.

        Unsupplied attributes keep their values; supplied relation references
        replace the previous ones. Only the last-update time moves.

        Raises:
            NotFoundError: If absent or owned by someone else
        """
        self._check_fields(attributes.keys(), self.descriptor.writable_fields, "writable")
        row = self.get(record_id, owner_id)

        for name, value in attributes.items():
            setattr(row, name, value)
        row.updated_at = utc_now_after(row.updated_at)

        try:
            self.session.commit()
            # Expired by commit; reload so changed relation references resolve.
            self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise self._store_failure("update", exc) from exc

        logger.debug(f"Updated {self.kind} {record_id}: {sorted(attributes)}")
        return row

    def delete(self, record_id: int, owner_id: Optional[Any] = None) -> None:
        """
        Delete a record. Dependents declared ON DELETE CASCADE are removed
        by the store in the same statement.

        Raises:
            NotFoundError: If absent or owned by someone else
        """
        row = self.get(record_id, owner_id)
        try:
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._store_failure("delete", exc) from exc
        logger.debug(f"Deleted {self.kind} {record_id}")
