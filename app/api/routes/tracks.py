from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
import asyncio
from sqlalchemy.orm import Session
from starlette.status import HTTP_201_CREATED, HTTP_202_ACCEPTED
from typing import Optional

from app.api.deps import get_current_user_id, get_operator_user_id, get_optional_user_id
from app.db.session import get_db
from app.db.models.track import Visibility
from app.db.models.track_version import TrackVersion
from app.schemas.track import TrackOut
from app.schemas.waveform import RenderedWaveformOut
from app.services.audio.io import audio_suffix
from app.services.audio.render import DEFAULT_BAR_GAP, DEFAULT_BAR_WIDTH, render_waveform
from app.services.storage import get_storage
from app.services.tasks.queue import enqueue_regeneration
from app.services.tracks import create_track, get_visible_track
from app.services.waveform import waveform_for_upload

router = APIRouter()


def _parse_tags(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


# ------- endpoint -------
@router.post("", status_code=HTTP_201_CREATED, response_model=TrackOut)
async def upload_track(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    visibility: Visibility = Form(Visibility.private),
    tags: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    audio_suffix(file.filename)
    data = await file.read()
    if not data:
        raise HTTPException(400, "Empty audio file")

    storage = get_storage()
    file_url = await asyncio.to_thread(storage.save, data, user_id, "track", file.filename)
    waveform_data, duration = await waveform_for_upload(data, file.filename)

    try:
        track = await asyncio.to_thread(
            create_track,
            db,
            user_id=user_id,
            title=title or file.filename,
            description=description,
            tags=_parse_tags(tags),
            visibility=visibility,
            file_url=file_url,
            filename=file.filename,
            waveform_data=waveform_data,
            duration=duration,
        )
    except Exception:
        await asyncio.to_thread(storage.delete, file_url)
        raise
    return TrackOut.from_model(track)


@router.post("/waveforms/regenerate", status_code=HTTP_202_ACCEPTED)
async def start_regeneration(
    limit: Optional[int] = Query(None, ge=1),
    user_id: str = Depends(get_operator_user_id),
):
    """Queue a batch job that fills in missing waveforms. Operators only."""
    job_id = await asyncio.to_thread(enqueue_regeneration, limit)
    return {"job_id": job_id, "status": "queued"}


@router.get("/{track_id}", response_model=TrackOut)
def get_track(
    track_id: int,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return TrackOut.from_model(get_visible_track(db, track_id, user_id))


@router.get("/{track_id}/waveform", response_model=RenderedWaveformOut)
def get_waveform(
    track_id: int,
    width: float = Query(..., gt=0),
    bar_width: float = Query(DEFAULT_BAR_WIDTH, gt=0),
    bar_gap: float = Query(DEFAULT_BAR_GAP, ge=0),
    version_id: Optional[int] = Query(None),
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Bars for the canonical waveform, or for one historical version."""
    track = get_visible_track(db, track_id, user_id)
    waveform_data, duration = track.waveform_data, track.duration
    if version_id is not None:
        version = db.get(TrackVersion, version_id)
        if version is None or version.track_id != track.id:
            raise HTTPException(404, "Version not found")
        waveform_data, duration = version.waveform_data, version.duration

    rendered = render_waveform(waveform_data, width, bar_width, bar_gap)
    return RenderedWaveformOut(
        peaks=rendered.peaks,
        barCount=len(rendered.peaks),
        isPlaceholder=rendered.is_placeholder,
        duration=duration,
    )
