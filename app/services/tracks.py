from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import PermissionDenied, TrackNotFound
from app.core.logging import logger
from app.db.models.track import Track, Visibility
from app.services.versions import ORIGINAL_LABEL


def create_track(
    db: Session,
    *,
    user_id: str,
    title: str,
    file_url: str,
    filename: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
    visibility: Visibility = Visibility.private,
    waveform_data: Optional[dict] = None,
    duration: Optional[float] = None,
) -> Track:
    """The original upload: canonical fields come from it until a version is pinned."""
    track = Track(
        user_id=user_id,
        title=title,
        description=description,
        tags=tags or [],
        visibility=visibility,
        version=ORIGINAL_LABEL,
        file_url=file_url,
        filename=filename,
        duration=duration,
        waveform_data=waveform_data,
    )
    try:
        db.add(track)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(
        f"[tracks] created track={track.id} user={user_id} "
        f"waveform={'yes' if waveform_data else 'no'} dur={duration}"
    )
    return track


def get_visible_track(db: Session, track_id: int, user_id: Optional[str]) -> Track:
    track = db.get(Track, track_id)
    if track is None or not track.is_visible_to(user_id):
        raise TrackNotFound("Track not found or you do not have permission to view it")
    return track


def get_owned_track(db: Session, track_id: int, user_id: str) -> Track:
    track = db.get(Track, track_id)
    if track is None:
        raise TrackNotFound("Track not found")
    if track.user_id != user_id:
        raise PermissionDenied("You do not have permission to modify this track")
    return track
