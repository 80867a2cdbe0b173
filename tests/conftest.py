"""Pytest configuration and fixtures."""

import pytest

from modelhub.database.client import get_engine, get_session_factory
from modelhub.database.descriptors import (
    DATASET,
    GPU_INSTANCE,
    MODEL,
    PROMPT,
    TRAINING_LOG,
    USER,
)
from modelhub.database.repository import EntityRepository


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables and foreign keys enabled."""
    engine = get_engine("sqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    """Create a temporary in-memory database session for testing."""
    SessionLocal = get_session_factory(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repos(session):
    """One repository per entity kind, all bound to the same session."""
    return {
        "user": EntityRepository(session, USER),
        "dataset": EntityRepository(session, DATASET),
        "model": EntityRepository(session, MODEL),
        "prompt": EntityRepository(session, PROMPT),
        "gpu_instance": EntityRepository(session, GPU_INSTANCE),
        "training_log": EntityRepository(session, TRAINING_LOG),
    }


@pytest.fixture
def owner(repos):
    return repos["user"].create({"name": "Ada", "email": "ada@example.com"})


@pytest.fixture
def other_owner(repos):
    return repos["user"].create({"name": "Grace", "email": "grace@example.com"})


@pytest.fixture
def make_model(repos):
    """Factory for models with distinct derived fields."""
    def _make(name="llama", **overrides):
        attributes = {
            "name": name,
            "label": f"{name}-label",
            "huggingface_id": f"org/{name}",
            "documentation": f"{name} docs",
        }
        attributes.update(overrides)
        return repos["model"].create(attributes)

    return _make


@pytest.fixture
def make_training_log(repos, make_model):
    """Factory for training logs; any relation not supplied is created."""
    def _make(owner_id, status="running", model=None, prompt=None, dataset=None, gpu=None):
        model = model or make_model()
        prompt = prompt or repos["prompt"].create({"prompt_text": "Summarize"}, owner_id=owner_id)
        dataset = dataset or repos["dataset"].create({"name": "wiki", "source": "s3"})
        gpu = gpu or repos["gpu_instance"].create({"name": "a100", "status": "idle"}, owner_id=owner_id)
        return repos["training_log"].create(
            {
                "status": status,
                "model_id": model.id,
                "prompt_id": prompt.id,
                "dataset_id": dataset.id,
                "gpu_instance_id": gpu.id,
            }
        )

    return _make
