"""Entity descriptors: per-kind metadata driving the generic repository.

Each entity kind is described once here (searchable columns, joined
relations, owner scoping, dropdown defaults). Names are checked against
the ORM mapping when this module is imported, so a misspelled field fails
at startup instead of at query time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from sqlalchemy import String, Text, inspect

from .schema import Dataset, GpuInstance, MLModel, Prompt, TrainingLog, User

TIMESTAMP_FIELDS = ("created_at", "updated_at")


class EntityKind(str, Enum):
    dataset = "dataset"
    model = "model"
    prompt = "prompt"
    gpu_instance = "gpu_instance"
    training_log = "training_log"
    user = "user"


@dataclass(frozen=True)
class SearchField:
    """A searchable column, either local or on a joined relation."""
    attribute: str
    relation: Optional[str] = None  # None = local column

    @property
    def tag(self) -> str:
        return "local" if self.relation is None else f"relation:{self.relation}"


@dataclass(frozen=True)
class RelationDescriptor:
    name: str  # relationship attribute on the owning model
    target: EntityKind
    foreign_key: str  # FK column on the owning model
    search_fields: Tuple[str, ...]

    @property
    def label_field(self) -> str:
        return self.search_fields[0]


@dataclass(frozen=True)
class EntityDescriptor:
    kind: EntityKind
    model: type
    search_fields: Tuple[str, ...]
    relations: Tuple[RelationDescriptor, ...] = ()
    owner_key: Optional[str] = None  # FK column holding the owner id
    dropdown_fields: Tuple[str, ...] = ("id",)
    columns: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        columns = tuple(c.key for c in inspect(self.model).column_attrs)
        object.__setattr__(self, "columns", columns)

        for name in (*self.search_fields, *self.dropdown_fields):
            if name not in columns:
                raise ValueError(f"{self.kind.value}: unknown column '{name}'")
        if self.owner_key is not None and self.owner_key not in columns:
            raise ValueError(f"{self.kind.value}: unknown owner key '{self.owner_key}'")

        mapped_relations = inspect(self.model).relationships
        for relation in self.relations:
            if relation.name not in mapped_relations:
                raise ValueError(f"{self.kind.value}: unknown relation '{relation.name}'")
            if relation.foreign_key not in columns:
                raise ValueError(
                    f"{self.kind.value}: unknown foreign key '{relation.foreign_key}'"
                )
            target_model = mapped_relations[relation.name].mapper.class_
            target_columns = {c.key for c in inspect(target_model).column_attrs}
            for name in relation.search_fields:
                if name not in target_columns:
                    raise ValueError(
                        f"{self.kind.value}.{relation.name}: unknown column '{name}'"
                    )

    @property
    def is_owner_scoped(self) -> bool:
        return self.owner_key is not None

    @property
    def writable_fields(self) -> Tuple[str, ...]:
        """Columns a caller may set on create/update."""
        excluded = {"id", *TIMESTAMP_FIELDS}
        if self.owner_key:
            excluded.add(self.owner_key)
        return tuple(c for c in self.columns if c not in excluded)

    @property
    def relation_keys(self) -> Tuple[str, ...]:
        return tuple(r.foreign_key for r in self.relations)

    @property
    def default_columns(self) -> Tuple[str, ...]:
        """Columns returned when no projection is requested (timestamps excluded)."""
        return tuple(c for c in self.columns if c not in TIMESTAMP_FIELDS)

    def relation(self, name: str) -> RelationDescriptor:
        for relation in self.relations:
            if relation.name == name:
                return relation
        raise ValueError(f"{self.kind.value} has no relation '{name}'")

    def is_text_column(self, name: str) -> bool:
        column = self.model.__table__.c[name]
        return isinstance(column.type, (String, Text))

    def iter_search_fields(self, exclude_relation: Optional[str] = None) -> Iterator[SearchField]:
        """Local searchable fields first, then each joined relation's fields."""
        for name in self.search_fields:
            yield SearchField(attribute=name)
        for relation in self.relations:
            if relation.name == exclude_relation:
                continue
            for name in relation.search_fields:
                yield SearchField(attribute=name, relation=relation.name)


USER = EntityDescriptor(
    kind=EntityKind.user,
    model=User,
    search_fields=("name", "email"),
    dropdown_fields=("id", "name"),
)

DATASET = EntityDescriptor(
    kind=EntityKind.dataset,
    model=Dataset,
    search_fields=("name", "source"),
    dropdown_fields=("id", "name"),
)

MODEL = EntityDescriptor(
    kind=EntityKind.model,
    model=MLModel,
    search_fields=("name", "label", "huggingface_id", "documentation"),
    dropdown_fields=("id", "name"),
)

PROMPT = EntityDescriptor(
    kind=EntityKind.prompt,
    model=Prompt,
    search_fields=("prompt_text",),
    owner_key="user_id",
    dropdown_fields=("id", "prompt_text"),
)

GPU_INSTANCE = EntityDescriptor(
    kind=EntityKind.gpu_instance,
    model=GpuInstance,
    search_fields=("name", "status"),
    owner_key="user_id",
    dropdown_fields=("id", "name"),
)

TRAINING_LOG = EntityDescriptor(
    kind=EntityKind.training_log,
    model=TrainingLog,
    search_fields=("status",),
    relations=(
        RelationDescriptor("model", EntityKind.model, "model_id", ("name",)),
        RelationDescriptor("prompt", EntityKind.prompt, "prompt_id", ("prompt_text",)),
        RelationDescriptor("dataset", EntityKind.dataset, "dataset_id", ("name",)),
        RelationDescriptor("gpu_instance", EntityKind.gpu_instance, "gpu_instance_id", ("name",)),
    ),
    dropdown_fields=("id",),
)

DESCRIPTORS: Dict[EntityKind, EntityDescriptor] = {
    d.kind: d for d in (USER, DATASET, MODEL, PROMPT, GPU_INSTANCE, TRAINING_LOG)
}


def get_descriptor(kind: "EntityKind | str") -> EntityDescriptor:
    """
    Look up the descriptor for an entity kind.

    Raises:
        ValueError: If the kind is not registered
    """
    try:
        return DESCRIPTORS[EntityKind(kind)]
    except ValueError:
        raise ValueError(
            f"Unknown entity kind '{kind}'. Expected one of: "
            + ", ".join(k.value for k in EntityKind)
        ) from None
