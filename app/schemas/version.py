from datetime import datetime
from pydantic import BaseModel

from app.schemas.track import TrackOut
from app.schemas.waveform import WaveformRecord


class VersionUpdate(BaseModel):
    title: str | None = None
    description: str | None = None


class VersionOut(BaseModel):
    id: int
    versionNumber: int
    title: str | None = None
    description: str | None = None
    fileUrl: str
    filename: str | None = None
    duration: float | None = None
    isPinned: bool
    createdAt: datetime | None = None
    waveformData: WaveformRecord | None = None

    @classmethod
    def from_model(cls, v, include_filename: bool = True) -> "VersionOut":
        # left unset (not None) so exclude_unset drops the key
        extra = {"filename": v.filename} if include_filename else {}
        return cls(
            id=v.id,
            versionNumber=v.version_number,
            title=v.title,
            description=v.description,
            fileUrl=v.file_url,
            duration=v.duration,
            isPinned=v.is_pinned,
            createdAt=v.created_at,
            waveformData=v.waveform_data,
            **extra,
        )


class VersionListOut(BaseModel):
    versions: list[VersionOut]


class VersionUploadOut(BaseModel):
    message: str
    version: VersionOut


class PinOut(BaseModel):
    message: str
    version: VersionOut
    track: TrackOut
