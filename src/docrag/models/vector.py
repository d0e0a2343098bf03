"""Records exchanged with a vector index."""

from typing import Any

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """One upsert entry: id, vector, and the chunk fields as metadata."""

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    """One ranked query result."""

    id: str
    score: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)
