from datetime import datetime
from pydantic import BaseModel
from typing import List

from app.schemas.waveform import WaveformRecord


class TrackOut(BaseModel):
    id: int
    userId: str
    title: str
    description: str | None = None
    tags: List[str] = []
    visibility: str
    version: str
    fileUrl: str
    duration: float | None = None
    waveformData: WaveformRecord | None = None
    pinnedVersionId: int | None = None
    createdAt: datetime | None = None

    @classmethod
    def from_model(cls, t) -> "TrackOut":
        return cls(
            id=t.id,
            userId=t.user_id,
            title=t.title,
            description=t.description,
            tags=t.tags or [],
            visibility=t.visibility.value if hasattr(t.visibility, "value") else t.visibility,
            version=t.version,
            fileUrl=t.file_url,
            duration=t.duration,
            waveformData=t.waveform_data,
            pinnedVersionId=t.pinned_version_id,
            createdAt=t.created_at,
        )
