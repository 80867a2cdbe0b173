"""CLI entrypoint for modelhub."""

import argparse
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from modelhub.api.entities_api import (
    create_record,
    delete_record,
    get_dropdown,
    get_record,
    list_records,
    list_records_by_relation,
    update_record,
)
from modelhub.config.loader import get_database_url, get_default_page_size, load_config
from modelhub.database.client import get_engine, session_context
from modelhub.database.descriptors import EntityKind
from modelhub.errors import NotFoundError
from modelhub.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

KIND_CHOICES = [k.value for k in EntityKind]


def _load(args: argparse.Namespace) -> Dict[str, Any]:
    config = load_config(Path(args.config) if args.config else None)
    configure_logging(config["logging"]["level"])
    return config


def _engine(config: Dict[str, Any]) -> Engine:
    return get_engine(get_database_url(config), echo=config["storage"].get("echo", False))


@contextmanager
def _session(config: Dict[str, Any]) -> Iterator[Session]:
    """Session on a fresh engine; the engine's pool is released on every exit path."""
    engine = _engine(config)
    try:
        with session_context(engine) as session:
            yield session
    finally:
        engine.dispose()


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _parse_payload(raw: str) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"--data is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("--data must be a JSON object")
    return payload


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create all tables."""
    config = _load(args)
    _engine(config).dispose()
    print(f"Database ready: {get_database_url(config)}")


def cmd_list(args: argparse.Namespace) -> None:
    """List records of a kind."""
    config = _load(args)
    limit = args.limit if args.limit is not None else get_default_page_size(config)
    with _session(config) as session:
        result = list_records(
            session,
            args.kind,
            page=args.page,
            limit=limit,
            search=args.search,
            owner_id=args.owner_id,
        )
        _print_json(result.model_dump())


def cmd_list_by(args: argparse.Namespace) -> None:
    """List records pinned to one related record."""
    config = _load(args)
    limit = args.limit if args.limit is not None else get_default_page_size(config)
    with _session(config) as session:
        result = list_records_by_relation(
            session,
            args.kind,
            args.relation,
            args.relation_id,
            page=args.page,
            limit=limit,
            search=args.search,
            owner_id=args.owner_id,
        )
        _print_json(result.model_dump())


def cmd_dropdown(args: argparse.Namespace) -> None:
    """Print dropdown entries (max 5)."""
    config = _load(args)
    with _session(config) as session:
        rows = get_dropdown(
            session,
            args.kind,
            fields=args.fields,
            keyword=args.keyword,
            owner_id=args.owner_id,
        )
        _print_json(rows)


def cmd_get(args: argparse.Namespace) -> None:
    """Print one record."""
    config = _load(args)
    with _session(config) as session:
        record = get_record(
            session,
            args.kind,
            args.id,
            owner_id=args.owner_id,
            include_timestamps=args.timestamps,
        )
        _print_json(record)


def cmd_create(args: argparse.Namespace) -> None:
    """Create a record from a JSON payload."""
    config = _load(args)
    payload = _parse_payload(args.data)
    with _session(config) as session:
        record = create_record(session, args.kind, payload, owner_id=args.owner_id)
        logger.info(f"Created {args.kind} {record['id']}")
        _print_json(record)


def cmd_update(args: argparse.Namespace) -> None:
    """Merge a JSON payload into a record."""
    config = _load(args)
    payload = _parse_payload(args.data)
    with _session(config) as session:
        record = update_record(session, args.kind, args.id, payload, owner_id=args.owner_id)
        _print_json(record)


def cmd_delete(args: argparse.Namespace) -> None:
    """Delete a record."""
    config = _load(args)
    with _session(config) as session:
        delete_record(session, args.kind, args.id, owner_id=args.owner_id)
        print(f"Deleted {args.kind} {args.id}")


def _add_owner(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--owner-id",
        type=int,
        help="Acting user id (required for prompt and gpu_instance)",
    )


def _add_paging(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--page", type=int, default=1, help="1-based page number (default: 1)")
    parser.add_argument("--limit", type=int, help="Page size (default: from config)")
    parser.add_argument("--search", type=str, help="Prefix keyword")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelhub",
        description="Datasets, models, prompts, GPU instances and training logs",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config file (default: modelhub.config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Create all tables")
    init_parser.set_defaults(func=cmd_init_db)

    list_parser = subparsers.add_parser("list", help="List records of a kind")
    list_parser.add_argument("kind", choices=KIND_CHOICES)
    _add_paging(list_parser)
    _add_owner(list_parser)
    list_parser.set_defaults(func=cmd_list)

    list_by_parser = subparsers.add_parser("list-by", help="List records pinned to a related record")
    list_by_parser.add_argument("kind", choices=KIND_CHOICES)
    list_by_parser.add_argument("relation", help="Relation name (e.g. model, dataset)")
    list_by_parser.add_argument("relation_id", type=int)
    _add_paging(list_by_parser)
    _add_owner(list_by_parser)
    list_by_parser.set_defaults(func=cmd_list_by)

    dropdown_parser = subparsers.add_parser("dropdown", help="Dropdown entries (max 5)")
    dropdown_parser.add_argument("kind", choices=KIND_CHOICES)
    dropdown_parser.add_argument("--fields", type=str, help="Comma-separated fields (default: id + label)")
    dropdown_parser.add_argument("--keyword", type=str, help="Prefix keyword")
    _add_owner(dropdown_parser)
    dropdown_parser.set_defaults(func=cmd_dropdown)

    get_parser = subparsers.add_parser("get", help="Show one record")
    get_parser.add_argument("kind", choices=KIND_CHOICES)
    get_parser.add_argument("id", type=int)
    get_parser.add_argument("--timestamps", action="store_true", help="Include created_at/updated_at")
    _add_owner(get_parser)
    get_parser.set_defaults(func=cmd_get)

    create_parser = subparsers.add_parser("create", help="Create a record")
    create_parser.add_argument("kind", choices=KIND_CHOICES)
    create_parser.add_argument("--data", type=str, required=True, help="JSON object of attributes")
    _add_owner(create_parser)
    create_parser.set_defaults(func=cmd_create)

    update_parser = subparsers.add_parser("update", help="Update a record")
    update_parser.add_argument("kind", choices=KIND_CHOICES)
    update_parser.add_argument("id", type=int)
    update_parser.add_argument("--data", type=str, required=True, help="JSON object of attributes")
    _add_owner(update_parser)
    update_parser.set_defaults(func=cmd_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a record")
    delete_parser.add_argument("kind", choices=KIND_CHOICES)
    delete_parser.add_argument("id", type=int)
    _add_owner(delete_parser)
    delete_parser.set_defaults(func=cmd_delete)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        args.func(args)
    except NotFoundError as e:
        print(f"Error: {e}")
        return 1
    except FileNotFoundError as e:
        logger.error(f"Config not found: {e}")
        print("Error: Config file not found. Create modelhub.config.yaml or pass --config")
        return 2
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
