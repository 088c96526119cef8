from datetime import datetime
from pydantic import BaseModel


class CommentCreate(BaseModel):
    content: str
    timestamp: float | None = None
    version: str | None = None


class CommentOut(BaseModel):
    id: int
    trackId: int
    userId: str
    content: str
    timestamp: float | None = None
    version: str | None = None
    markerPosition: float | None = None
    createdAt: datetime | None = None
