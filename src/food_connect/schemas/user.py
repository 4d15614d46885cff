"""User-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Public identity shown next to content."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
