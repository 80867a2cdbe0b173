"""Tests for listing and dropdown query construction."""

from modelhub.database.descriptors import DATASET, TRAINING_LOG
from modelhub.database.pagination import Window
from modelhub.database.query_builder import (
    DROPDOWN_LIMIT,
    QuerySpec,
    build_dropdown_query,
    build_listing_queries,
)
from modelhub.database.schema import TrainingLog


def _sql(query) -> str:
    return str(query.statement.compile(compile_kwargs={"literal_binds": True}))


def test_listing_inner_joins_every_relation(session):
    spec = QuerySpec(descriptor=TRAINING_LOG, window=Window(0, 10))
    page_query, count_query = build_listing_queries(session, spec)

    for sql in (_sql(page_query), _sql(count_query)):
        assert "LEFT OUTER JOIN" not in sql
        for alias in ("rel_model", "rel_prompt", "rel_dataset", "rel_gpu_instance"):
            assert alias in sql


def test_page_and_count_share_the_predicate(session):
    spec = QuerySpec(
        descriptor=TRAINING_LOG,
        window=Window(0, 10),
        keyword="Sum",
        filters=[TrainingLog.model_id == 3],
        exclude_relation="model",
    )
    page_query, count_query = build_listing_queries(session, spec)

    for sql in (_sql(page_query), _sql(count_query)):
        assert "training_logs.model_id = 3" in sql
        assert "rel_prompt.prompt_text LIKE" in sql
        assert "rel_model.name LIKE" not in sql


def test_pin_is_anded_with_the_keyword_block(session):
    spec = QuerySpec(
        descriptor=TRAINING_LOG,
        window=Window(0, 10),
        keyword="x",
        filters=[TrainingLog.model_id == 3],
        exclude_relation="model",
    )
    page_query, _ = build_listing_queries(session, spec)
    sql = _sql(page_query)

    # The keyword ORs sit inside parentheses after the pin.
    assert "training_logs.model_id = 3 AND (" in sql


def test_listing_orders_newest_first(session):
    page_query, _ = build_listing_queries(session, QuerySpec(descriptor=DATASET, window=Window(0, 10)))
    assert "ORDER BY datasets.created_at DESC, datasets.id ASC" in _sql(page_query)


def test_dropdown_projects_and_limits(session):
    spec = QuerySpec(descriptor=DATASET, window=Window(0, DROPDOWN_LIMIT), projection=("id", "name"))
    sql = _sql(build_dropdown_query(session, spec))

    assert sql.startswith("SELECT datasets.id, datasets.name")
    assert f"LIMIT {DROPDOWN_LIMIT}" in sql


def test_dropdown_keyword_falls_back_to_search_fields(session):
    """With only the id projected, the keyword runs on the kind's search fields."""
    spec = QuerySpec(descriptor=DATASET, window=Window(0, DROPDOWN_LIMIT), keyword="wi", projection=("id",))
    sql = _sql(build_dropdown_query(session, spec))

    assert "datasets.name LIKE" in sql
    assert "datasets.source LIKE" in sql
