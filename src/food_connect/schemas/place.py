"""Place-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class PlaceSummary(BaseModel):
    """Place attached to a chat message."""

    id: int
    name: str
    images: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
