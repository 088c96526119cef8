"""
Version history and the pin transition.

A track points at its pinned version through ``Track.pinned_version_id``;
``TrackVersion.is_pinned`` is derived from that pointer, so two pinned
siblings cannot be represented. The canonical fields on the track
(version label, file_url, duration, waveform_data) are written only here,
and always in the same transaction that moves the pointer.
"""
import copy
import threading
import time
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvariantViolation, TrackNotFound, VersionConflict, VersionNotFound
from app.core.logging import logger
from app.db.models.track import Track
from app.db.models.track_version import TrackVersion

ORIGINAL_LABEL = "001"

# in-process writer locks, striped by track id
_WRITER_LOCKS = [threading.Lock() for _ in range(64)]


def version_label(version_number: int) -> str:
    return f"{int(version_number):03d}"


@contextmanager
def _single_writer(track_id: int):
    # SELECT ... FOR UPDATE does nothing on sqlite, so writers in this
    # process also queue on a lock per track
    with _WRITER_LOCKS[int(track_id) % len(_WRITER_LOCKS)]:
        yield


def _lock_track(db: Session, track_id: int) -> Track:
    # row lock serialises pins and version numbering per track (no-op on sqlite)
    stmt = (
        select(Track)
        .where(Track.id == track_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    track = db.execute(stmt).scalar_one_or_none()
    if track is None:
        raise TrackNotFound(f"Track {track_id} not found")
    return track


def _get_version(db: Session, track_id: int, version_id: int) -> TrackVersion:
    stmt = select(TrackVersion).where(
        TrackVersion.id == version_id,
        TrackVersion.track_id == track_id,
    )
    version = db.execute(stmt).scalar_one_or_none()
    if version is None:
        raise VersionNotFound(f"Version {version_id} not found on track {track_id}")
    return version


def _next_version_number(db: Session, track_id: int) -> int:
    # locking read: sees rows committed after this transaction started
    stmt = (
        select(func.max(TrackVersion.version_number))
        .where(TrackVersion.track_id == track_id)
        .with_for_update()
    )
    current = db.execute(stmt).scalar()
    return max(current or 0, 0) + 1


def _copy_canonical(track: Track, version: TrackVersion) -> None:
    track.version = version_label(version.version_number)
    track.file_url = version.file_url
    track.duration = version.duration
    track.waveform_data = copy.deepcopy(version.waveform_data)


def _apply_pin(track: Track, version: TrackVersion) -> None:
    track.pinned_version_id = version.id
    _copy_canonical(track, version)


def list_versions(db: Session, track_id: int) -> List[TrackVersion]:
    stmt = (
        select(TrackVersion)
        .where(TrackVersion.track_id == track_id)
        .order_by(TrackVersion.version_number.asc())
    )
    return list(db.execute(stmt).scalars().all())


def upload_version(
    db: Session,
    track_id: int,
    *,
    file_url: str,
    filename: Optional[str] = None,
    waveform_data: Optional[dict] = None,
    duration: Optional[float] = None,
    make_default: bool = False,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> TrackVersion:
    """
    Append a version with number max(existing, 0) + 1. With make_default the
    pin transition runs in the same transaction.
    """
    retries = max(1, settings.VERSION_NUMBER_RETRIES)
    for attempt in range(1, retries + 1):
        try:
            with _single_writer(track_id):
                track = _lock_track(db, track_id)
                number = _next_version_number(db, track.id)
                version = TrackVersion(
                    track=track,
                    version_number=number,
                    title=title,
                    description=description,
                    file_url=file_url,
                    filename=filename,
                    duration=duration,
                    waveform_data=waveform_data,
                )
                db.add(version)
                db.flush()
                if make_default:
                    _apply_pin(track, version)
                db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                f"[versions] track={track_id} version number conflict "
                f"(attempt {attempt}/{retries})"
            )
            if attempt < retries:
                # another process took the number; give it time to commit
                time.sleep(settings.VERSION_RETRY_BACKOFF * attempt)
            continue
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"[versions] track={track_id} created v{version_label(number)} "
            f"id={version.id} pinned={make_default}"
        )
        return version

    raise VersionConflict(f"Could not assign a version number on track {track_id}, try again")


def pin(db: Session, track_id: int, version_id: int) -> TrackVersion:
    """
    Make `version_id` the canonical version of `track_id`.

    Unpinning the previous version, pinning the target and copying its
    fields onto the track happen in one transaction. A version outside the
    track raises VersionNotFound with nothing written.
    """
    with _single_writer(track_id):
        try:
            track = _lock_track(db, track_id)
            version = _get_version(db, track.id, version_id)
            previous = track.pinned_version_id
            _apply_pin(track, version)
            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info(
        f"[versions] track={track_id} pinned version={version_id} "
        f"(was {previous}) label={track.version}"
    )
    return version


def update_version(
    db: Session,
    track_id: int,
    version_id: int,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> TrackVersion:
    try:
        version = _get_version(db, track_id, version_id)
        if title is not None:
            version.title = title
        if description is not None:
            version.description = description
        db.commit()
    except Exception:
        db.rollback()
        raise
    return version


def attach_waveform(
    db: Session,
    track_id: int,
    version_id: Optional[int],
    waveform_data: dict,
    duration: float,
) -> None:
    """
    Store recomputed waveform data on a version, or on the original upload
    when `version_id` is None, keeping the track's canonical copy in sync.
    """
    with _single_writer(track_id):
        try:
            track = _lock_track(db, track_id)
            if version_id is None:
                if track.pinned_version_id is not None:
                    logger.info(
                        f"[versions] track={track_id} has a pinned version; "
                        f"original waveform is no longer canonical, skipping"
                    )
                    db.commit()
                    return
                track.waveform_data = waveform_data
                track.duration = duration
            else:
                version = _get_version(db, track.id, version_id)
                version.waveform_data = waveform_data
                version.duration = duration
                if track.pinned_version_id == version.id:
                    _copy_canonical(track, version)
            db.commit()
        except Exception:
            db.rollback()
            raise


def _verify(db: Session, track: Track) -> Optional[TrackVersion]:
    if track.pinned_version_id is None:
        return None
    pinned = db.get(TrackVersion, track.pinned_version_id)
    if pinned is None or pinned.track_id != track.id:
        raise InvariantViolation(
            f"track={track.id} points at version {track.pinned_version_id} outside its history"
        )
    drift = (
        track.version != version_label(pinned.version_number)
        or track.file_url != pinned.file_url
        or track.duration != pinned.duration
        or track.waveform_data != pinned.waveform_data
    )
    if drift:
        raise InvariantViolation(f"track={track.id} canonical fields differ from pinned version {pinned.id}")
    return pinned


def _repair(db: Session, track: Track) -> None:
    pinned = db.get(TrackVersion, track.pinned_version_id) if track.pinned_version_id else None
    if pinned is None or pinned.track_id != track.id:
        history = list_versions(db, track.id)
        if not history:
            track.pinned_version_id = None
            return
        pinned = history[-1]
    _apply_pin(track, pinned)


def ensure_consistent(db: Session, track_id: int) -> Track:
    """
    Check the pin pointer and canonical fields of a track, repairing in place
    (highest version_number wins) instead of failing the read.
    """
    with _single_writer(track_id):
        try:
            track = _lock_track(db, track_id)
            try:
                _verify(db, track)
            except InvariantViolation as e:
                logger.warning(f"[versions] {e}; repairing")
                _repair(db, track)
            db.commit()
        except Exception:
            db.rollback()
            raise
    return track
