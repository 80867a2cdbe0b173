"""Tests for entity descriptors."""

import pytest

from modelhub.database.descriptors import (
    DESCRIPTORS,
    EntityDescriptor,
    EntityKind,
    RelationDescriptor,
    SearchField,
    TRAINING_LOG,
    get_descriptor,
)
from modelhub.database.schema import Dataset, TrainingLog


def test_every_kind_has_a_descriptor():
    assert set(DESCRIPTORS) == set(EntityKind)


def test_get_descriptor_accepts_strings_and_enums():
    assert get_descriptor("dataset") is get_descriptor(EntityKind.dataset)


def test_get_descriptor_rejects_unknown_kinds():
    with pytest.raises(ValueError, match="Unknown entity kind 'widget'"):
        get_descriptor("widget")


@pytest.mark.parametrize(
    "kind, owner_key, dropdown",
    [
        ("dataset", None, ("id", "name")),
        ("model", None, ("id", "name")),
        ("prompt", "user_id", ("id", "prompt_text")),
        ("gpu_instance", "user_id", ("id", "name")),
        ("training_log", None, ("id",)),
        ("user", None, ("id", "name")),
    ],
)
def test_scoping_and_dropdown_defaults(kind, owner_key, dropdown):
    descriptor = get_descriptor(kind)
    assert descriptor.owner_key == owner_key
    assert descriptor.dropdown_fields == dropdown


def test_writable_fields_exclude_managed_columns():
    prompt = get_descriptor("prompt")
    assert prompt.writable_fields == ("prompt_text",)
    assert "id" not in TRAINING_LOG.writable_fields
    assert set(TRAINING_LOG.relation_keys) <= set(TRAINING_LOG.writable_fields)


def test_search_fields_local_first_then_relations():
    fields = list(TRAINING_LOG.iter_search_fields())
    assert fields[0] == SearchField("status")
    assert [f.tag for f in fields[1:]] == [
        "relation:model",
        "relation:prompt",
        "relation:dataset",
        "relation:gpu_instance",
    ]


def test_search_fields_can_skip_a_pinned_relation():
    tags = {f.tag for f in TRAINING_LOG.iter_search_fields(exclude_relation="model")}
    assert "relation:model" not in tags
    assert "local" in tags


def test_misspelled_column_fails_at_construction():
    with pytest.raises(ValueError, match="unknown column 'nmae'"):
        EntityDescriptor(kind=EntityKind.dataset, model=Dataset, search_fields=("nmae",))


def test_misspelled_relation_column_fails_at_construction():
    with pytest.raises(ValueError, match="unknown column 'title'"):
        EntityDescriptor(
            kind=EntityKind.training_log,
            model=TrainingLog,
            search_fields=("status",),
            relations=(RelationDescriptor("model", EntityKind.model, "model_id", ("title",)),),
        )
