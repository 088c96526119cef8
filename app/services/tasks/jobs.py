from __future__ import annotations

import time
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import AppError
from app.core.logging import logger
from app.db.session import SessionLocal

from app.db.models.track import Track
from app.db.models.track_version import TrackVersion
from app.services.audio.peaks import extract_peaks_from_bytes
from app.services.storage import get_storage
from app.services.versions import attach_waveform
from app.services.waveform import build_record


def _missing_waveforms(db: Session, limit: Optional[int]):
    # original uploads only count while no version is pinned
    tracks = select(Track.id, Track.file_url, Track.filename).where(
        Track.waveform_data.is_(None), Track.pinned_version_id.is_(None)
    )
    versions = select(TrackVersion.track_id, TrackVersion.id, TrackVersion.file_url, TrackVersion.filename).where(
        TrackVersion.waveform_data.is_(None)
    )
    if limit:
        tracks = tracks.limit(limit)
        versions = versions.limit(limit)
    targets = [(row.id, None, row.file_url, row.filename) for row in db.execute(tracks)]
    targets += [(row.track_id, row.id, row.file_url, row.filename) for row in db.execute(versions)]
    return targets


def regenerate_waveforms_job(limit: Optional[int] = None, storage=None, session_factory=None) -> Dict[str, int]:
    """
    RQ job: recompute waveform data for originals and versions stored without
    it (failed or timed-out extraction at upload). One bad file never stops
    the batch.
    """
    storage = storage or get_storage()
    db = (session_factory or SessionLocal)()
    stats = {"found": 0, "done": 0, "failed": 0, "skipped": 0}
    t0 = time.time()

    def dt() -> str:
        return f"{time.time() - t0:.2f}s"

    try:
        targets = _missing_waveforms(db, limit)
        db.commit()
        stats["found"] = len(targets)
        logger.info(f"[jobs] regenerate START targets={len(targets)}")

        for track_id, version_id, file_url, filename in targets:
            label = f"track={track_id} version={version_id}"
            if not file_url:
                logger.info(f"[jobs] {label} SKIP no file url")
                stats["skipped"] += 1
                continue

            s = time.time()
            try:
                data = storage.read(file_url)
                extracted = extract_peaks_from_bytes(data, filename or file_url)
                # the target may have been deleted since the scan
                attach_waveform(db, track_id, version_id, build_record(extracted), extracted.duration)
            except (AppError, OSError, ValueError) as e:
                logger.error(f"[jobs] {label} FAILED {e} dt={time.time()-s:.2f}s total={dt()}")
                stats["failed"] += 1
                continue

            stats["done"] += 1
            logger.info(
                f"[jobs] {label} DONE peaks={len(extracted.peaks)} dur={extracted.duration:.2f}s "
                f"dt={time.time()-s:.2f}s total={dt()}"
            )

        logger.info(f"[jobs] regenerate COMPLETE {stats} total={dt()}")
        return stats

    except Exception as e:
        logger.exception(f"[jobs] regenerate_waveforms_job FAILED: {e} total={dt()}")
        raise
    finally:
        db.close()
