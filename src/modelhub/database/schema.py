from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False, index=True)  # ISO 8601 string
    updated_at = Column(String, nullable=False)  # ISO 8601 string


class Dataset(Base):
    __tablename__ = "datasets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    source = Column(String(255), nullable=False)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)


class MLModel(Base):
    __tablename__ = "models"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    label = Column(String(255), nullable=False)
    huggingface_id = Column(String(255), nullable=False)
    documentation = Column(Text, nullable=False)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)


class Prompt(Base):
    __tablename__ = "prompts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt_text = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)


class GpuInstance(Base):
    __tablename__ = "gpu_instances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    status = Column(String(64), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)


class TrainingLog(Base):
    __tablename__ = "training_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(String(64), nullable=False)
    # Nullable at the schema level; listings still inner-join every relation.
    model_id = Column(Integer, ForeignKey("models.id", ondelete="CASCADE"), nullable=True, index=True)
    prompt_id = Column(Integer, ForeignKey("prompts.id", ondelete="CASCADE"), nullable=True, index=True)
    dataset_id = Column(Integer, ForeignKey("datasets.id", ondelete="CASCADE"), nullable=True, index=True)
    gpu_instance_id = Column(Integer, ForeignKey("gpu_instances.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)

    model = relationship("MLModel")
    prompt = relationship("Prompt")
    dataset = relationship("Dataset")
    gpu_instance = relationship("GpuInstance")


def create_all(engine) -> None:
    """Create every modelhub table on the given engine."""
    Base.metadata.create_all(engine)
