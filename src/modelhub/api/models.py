"""Payload and result DTOs for the API layer.

Create models carry every required attribute and relation reference;
update models make everything optional so only supplied fields are merged.
"""

from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from ..database.descriptors import EntityKind


class PageResult(BaseModel):
    """One page of records plus the total matching the same filter."""
    items: List[Dict[str, Any]]
    total: int


class DatasetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    source: str = Field(..., min_length=1, max_length=255)


class DatasetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    source: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ModelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    label: str = Field(..., min_length=1, max_length=255)
    huggingface_id: str = Field(..., min_length=1, max_length=255)
    documentation: str = Field(..., min_length=1)


class ModelUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    huggingface_id: Optional[str] = Field(default=None, min_length=1, max_length=255)
    documentation: Optional[str] = Field(default=None, min_length=1)


class PromptCreate(BaseModel):
    prompt_text: str = Field(..., min_length=1)


class PromptUpdate(BaseModel):
    prompt_text: Optional[str] = Field(default=None, min_length=1)


class GpuInstanceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    status: str = Field(..., min_length=1, max_length=64)  # opaque, no state machine


class GpuInstanceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[str] = Field(default=None, min_length=1, max_length=64)


class TrainingLogCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str = Field(..., min_length=1, max_length=64)
    model_id: int
    prompt_id: int
    dataset_id: int
    gpu_instance_id: int


class TrainingLogUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: Optional[str] = Field(default=None, min_length=1, max_length=64)
    model_id: Optional[int] = None
    prompt_id: Optional[int] = None
    dataset_id: Optional[int] = None
    gpu_instance_id: Optional[int] = None


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    email_verified: bool = False


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email_verified: Optional[bool] = None


PAYLOAD_MODELS: Dict[EntityKind, Tuple[Type[BaseModel], Type[BaseModel]]] = {
    EntityKind.dataset: (DatasetCreate, DatasetUpdate),
    EntityKind.model: (ModelCreate, ModelUpdate),
    EntityKind.prompt: (PromptCreate, PromptUpdate),
    EntityKind.gpu_instance: (GpuInstanceCreate, GpuInstanceUpdate),
    EntityKind.training_log: (TrainingLogCreate, TrainingLogUpdate),
    EntityKind.user: (UserCreate, UserUpdate),
}
