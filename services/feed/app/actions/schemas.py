from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ItemAction


class ActionCreate(BaseModel):
    item_id: str = Field(min_length=1, max_length=64, description="Feed item id.")
    action: ItemAction = Field(description="save, like, open or hide. hide removes the item from the caller's feed.")


class ActionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    item_id: str
    action: ItemAction
    created_at: datetime


class ActionListResponse(BaseModel):
    items: list[ActionResponse]
    total: int
    limit: int
    offset: int
