"""
Comments bound to a (timestamp, version label) pair.

The label is captured when the comment is created and never recomputed, so
later pin changes do not move comments between versions.
"""
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import CommentNotFound, InvalidComment, PermissionDenied
from app.core.logging import logger
from app.db.models.comment import Comment
from app.db.models.track import Track
from app.db.models.track_version import TrackVersion
from app.services.versions import version_label


def current_label(db: Session, track: Track) -> str:
    if track.pinned_version_id is not None:
        pinned = db.get(TrackVersion, track.pinned_version_id)
        if pinned is not None and pinned.track_id == track.id:
            return version_label(pinned.version_number)
    return track.version


def bind(
    db: Session,
    track: Track,
    user_id: str,
    content: str,
    timestamp: Optional[float] = None,
    label: Optional[str] = None,
) -> Comment:
    text = (content or "").strip()
    if not text:
        raise InvalidComment("Comment content is required")
    if timestamp is not None and timestamp < 0:
        raise InvalidComment("Comment timestamp must be non-negative")

    comment = Comment(
        track_id=track.id,
        user_id=user_id,
        content=text,
        timestamp=timestamp,
        version=label or current_label(db, track),
    )
    try:
        db.add(comment)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.debug(f"[comments] track={track.id} comment={comment.id} version={comment.version}")
    return comment


def list_comments(db: Session, track_id: int) -> List[Comment]:
    stmt = (
        select(Comment)
        .where(Comment.track_id == track_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def filter_for_version(comments: Iterable[Comment], viewed_label: str, canonical_label: str) -> List[Comment]:
    """
    Comments shown while `viewed_label` plays. Unlabelled comments belong to
    the canonical version only.
    """
    shown = []
    for c in comments:
        if c.version == viewed_label or (c.version is None and viewed_label == canonical_label):
            shown.append(c)
    return shown


def marker_position(timestamp: Optional[float], duration: Optional[float]) -> Optional[float]:
    """Fraction along the viewed version's waveform, clamped to [0, 1]."""
    if timestamp is None or duration is None or duration <= 0:
        return None
    return min(1.0, max(0.0, timestamp / duration))


def delete_comment(db: Session, track_id: int, comment_id: int, user_id: str) -> None:
    comment = db.get(Comment, comment_id)
    if comment is None or comment.track_id != track_id:
        raise CommentNotFound()
    if comment.user_id != user_id:
        raise PermissionDenied("You can only delete your own comments")
    try:
        db.delete(comment)
        db.commit()
    except Exception:
        db.rollback()
        raise
