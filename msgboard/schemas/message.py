from datetime import datetime

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    author: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1)


class MessageOut(BaseModel):
    id: int
    user_id: int | None
    author: str
    content: str
    timestamp: datetime

    class Config:
        from_attributes = True
