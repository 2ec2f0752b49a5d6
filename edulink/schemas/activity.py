from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityOut(BaseModel):
    id: int
    type: str
    title: str
    description: Optional[str] = None
    read: bool = Field(validation_alias="is_read")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountOut(BaseModel):
    unread: int
