from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.status import HTTP_201_CREATED
from typing import List, Optional

from app.api.deps import get_current_user_id, get_optional_user_id
from app.db.session import get_db
from app.db.models.comment import Comment
from app.db.models.track import Track
from app.schemas.comment import CommentCreate, CommentOut
from app.services import comments as comment_binding
from app.services.tracks import get_visible_track
from app.services.versions import list_versions, version_label

router = APIRouter()


def _duration_for_label(db: Session, track: Track, label: str) -> Optional[float]:
    if label == track.version:
        return track.duration
    for v in list_versions(db, track.id):
        if version_label(v.version_number) == label:
            return v.duration
    return None


def _out(c: Comment, duration: Optional[float]) -> CommentOut:
    return CommentOut(
        id=c.id,
        trackId=c.track_id,
        userId=c.user_id,
        content=c.content,
        timestamp=c.timestamp,
        version=c.version,
        markerPosition=comment_binding.marker_position(c.timestamp, duration),
        createdAt=c.created_at,
    )


@router.get("/{track_id}/comments", response_model=List[CommentOut])
def get_track_comments(
    track_id: int,
    version: Optional[str] = Query(None, description="Label of the version being viewed, e.g. 002"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    track = get_visible_track(db, track_id, user_id)
    comments = comment_binding.list_comments(db, track.id)
    if version is None:
        return [_out(c, None) for c in comments]

    # markers follow the viewed version's duration
    duration = _duration_for_label(db, track, version)
    shown = comment_binding.filter_for_version(comments, version, track.version)
    return [_out(c, duration) for c in shown]


@router.post("/{track_id}/comments", status_code=HTTP_201_CREATED, response_model=CommentOut)
def create_track_comment(
    track_id: int,
    body: CommentCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    track = get_visible_track(db, track_id, user_id)
    comment = comment_binding.bind(
        db, track, user_id, body.content, timestamp=body.timestamp, label=body.version
    )
    return _out(comment, _duration_for_label(db, track, comment.version))


@router.delete("/{track_id}/comments/{comment_id}")
def delete_track_comment(
    track_id: int,
    comment_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    comment_binding.delete_comment(db, track_id, comment_id, user_id)
    return {"success": True}
