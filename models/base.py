"""Base models shared by configuration, evaluation and persisted rows."""

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Immutable model; safe to share across concurrent requests."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
