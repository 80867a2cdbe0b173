"""Entities API: canonical operation surface for every entity kind."""

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..database.descriptors import EntityDescriptor, EntityKind, get_descriptor
from ..database.pagination import DEFAULT_TAKE, page_to_window
from ..database.repository import EntityRepository
from .models import PAYLOAD_MODELS, PageResult

if TYPE_CHECKING:
    from ..database.pagination import PageSlice


def _repository(session: Session, kind: "EntityKind | str") -> EntityRepository:
    return EntityRepository(session, get_descriptor(kind))


def row_to_record(
    row: Any,
    descriptor: EntityDescriptor,
    include_timestamps: bool = False,
) -> Dict[str, Any]:
    """
    Convert an ORM row to a plain record dict.

    Scalar columns and foreign keys come first; each declared relation is
    added as a `{id, <label>}` summary (or None when unset). Timestamps are
    only included on request.
    """
    record = {name: getattr(row, name) for name in descriptor.default_columns}
    for relation in descriptor.relations:
        related = getattr(row, relation.name)
        if related is None:
            record[relation.name] = None
        else:
            record[relation.name] = {
                "id": related.id,
                relation.label_field: getattr(related, relation.label_field),
            }
    if include_timestamps:
        record["created_at"] = row.created_at
        record["updated_at"] = row.updated_at
    return record


def _to_page(page: "PageSlice", descriptor: EntityDescriptor) -> PageResult:
    return PageResult(
        items=[row_to_record(row, descriptor) for row in page.items],
        total=page.total,
    )


def _parse_fields(fields: "str | Iterable[str] | None") -> Optional[List[str]]:
    if fields is None:
        return None
    if isinstance(fields, str):
        parsed = [f.strip() for f in fields.split(",") if f.strip()]
    else:
        parsed = [f for f in fields if f]
    return parsed or None


def list_records(
    session: Session,
    kind: "EntityKind | str",
    page: Any = 1,
    limit: Any = DEFAULT_TAKE,
    search: Optional[str] = None,
    owner_id: Optional[Any] = None,
) -> PageResult:
    """
    List records of a kind, newest first.

    Args:
        session: SQLAlchemy session
        kind: Entity kind (e.g. "dataset")
        page: 1-based page number (coerced, never rejected)
        limit: Page size (coerced, never rejected)
        search: Optional prefix keyword across local and joined fields
        owner_id: Acting owner; required for owner-scoped kinds

    Returns:
        PageResult with items and total
    """
    repo = _repository(session, kind)
    window = page_to_window(page, limit)
    result = repo.list(window.skip, window.take, keyword=search, owner_id=owner_id)
    return _to_page(result, repo.descriptor)


def list_records_by_relation(
    session: Session,
    kind: "EntityKind | str",
    relation: str,
    relation_id: Any,
    page: Any = 1,
    limit: Any = DEFAULT_TAKE,
    search: Optional[str] = None,
    owner_id: Optional[Any] = None,
) -> PageResult:
    """List records whose `relation` reference equals `relation_id` (e.g. training logs of one model)."""
    repo = _repository(session, kind)
    window = page_to_window(page, limit)
    result = repo.list_by_relation(
        relation,
        relation_id,
        window.skip,
        window.take,
        keyword=search,
        owner_id=owner_id,
    )
    return _to_page(result, repo.descriptor)


def get_dropdown(
    session: Session,
    kind: "EntityKind | str",
    fields: "str | Iterable[str] | None" = None,
    keyword: Optional[str] = None,
    owner_id: Optional[Any] = None,
) -> List[Dict[str, Any]]:
    """
    Dropdown data: projected fields only, at most five entries.

    `fields` may be a comma-separated string; it defaults to the kind's
    id + label pair.
    """
    repo = _repository(session, kind)
    return repo.list_dropdown(_parse_fields(fields), keyword=keyword, owner_id=owner_id)


def get_record(
    session: Session,
    kind: "EntityKind | str",
    record_id: int,
    owner_id: Optional[Any] = None,
    include_timestamps: bool = False,
) -> Dict[str, Any]:
    """
    Get a single record.

    Raises:
        NotFoundError: If absent or outside the owner's scope
    """
    repo = _repository(session, kind)
    row = repo.get(record_id, owner_id=owner_id)
    return row_to_record(row, repo.descriptor, include_timestamps=include_timestamps)


def create_record(
    session: Session,
    kind: "EntityKind | str",
    payload: Dict[str, Any],
    owner_id: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Validate the payload and create a record.

    Raises:
        pydantic.ValidationError: If the payload is malformed
        StoreFailure: If the store rejects the insert (e.g. dangling reference)
    """
    repo = _repository(session, kind)
    create_model, _ = PAYLOAD_MODELS[repo.descriptor.kind]
    attributes = create_model(**payload).model_dump()
    row = repo.create(attributes, owner_id=owner_id)
    return row_to_record(row, repo.descriptor, include_timestamps=True)


def update_record(
    session: Session,
    kind: "EntityKind | str",
    record_id: int,
    payload: Dict[str, Any],
    owner_id: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Merge the supplied fields into an existing record.

    Fields left out of the payload (or sent as null) keep their values.

    Raises:
        NotFoundError: If absent or outside the owner's scope
    """
    repo = _repository(session, kind)
    _, update_model = PAYLOAD_MODELS[repo.descriptor.kind]
    attributes = update_model(**payload).model_dump(exclude_unset=True, exclude_none=True)
    row = repo.update(record_id, attributes, owner_id=owner_id)
    return row_to_record(row, repo.descriptor, include_timestamps=True)


def delete_record(
    session: Session,
    kind: "EntityKind | str",
    record_id: int,
    owner_id: Optional[Any] = None,
) -> None:
    """
    Delete a record; the store cascades dependents.

    Raises:
        NotFoundError: If absent or outside the owner's scope
    """
    _repository(session, kind).delete(record_id, owner_id=owner_id)
