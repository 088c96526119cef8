from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
import asyncio
from sqlalchemy.orm import Session
from starlette.status import HTTP_201_CREATED
from typing import Optional

from app.api.deps import get_current_user_id, get_optional_user_id
from app.db.session import get_db
from app.schemas.track import TrackOut
from app.schemas.version import PinOut, VersionListOut, VersionOut, VersionUpdate, VersionUploadOut
from app.services import versions as version_manager
from app.services.audio.io import audio_suffix
from app.services.storage import get_storage
from app.services.tracks import get_owned_track, get_visible_track
from app.services.waveform import waveform_for_upload

router = APIRouter()


@router.get("/{track_id}/versions", response_model=VersionListOut, response_model_exclude_unset=True)
def list_track_versions(
    track_id: int,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    track = get_visible_track(db, track_id, user_id)
    version_manager.ensure_consistent(db, track.id)
    is_owner = user_id == track.user_id
    # filename is private to the owner
    out = [
        VersionOut.from_model(v, include_filename=is_owner)
        for v in version_manager.list_versions(db, track.id)
    ]
    return VersionListOut(versions=out)


@router.post("/{track_id}/versions", status_code=HTTP_201_CREATED, response_model=VersionUploadOut)
async def upload_track_version(
    track_id: int,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    makeDefault: bool = Form(False),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    track = await asyncio.to_thread(get_owned_track, db, track_id, user_id)
    audio_suffix(file.filename)
    data = await file.read()
    if not data:
        raise HTTPException(400, "Empty audio file")

    storage = get_storage()
    file_url = await asyncio.to_thread(storage.save, data, user_id, f"{track.id}-version", file.filename)
    waveform_data, duration = await waveform_for_upload(data, file.filename)

    try:
        version = await asyncio.to_thread(
            version_manager.upload_version,
            db,
            track.id,
            file_url=file_url,
            filename=file.filename,
            waveform_data=waveform_data,
            duration=duration,
            make_default=makeDefault,
            title=title,
            description=description,
        )
    except Exception:
        await asyncio.to_thread(storage.delete, file_url)
        raise
    return VersionUploadOut(message="Track version uploaded successfully", version=VersionOut.from_model(version))


@router.patch("/{track_id}/versions/{version_id}", response_model=VersionOut)
def update_track_version(
    track_id: int,
    version_id: int,
    body: VersionUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    track = get_owned_track(db, track_id, user_id)
    version = version_manager.update_version(
        db, track.id, version_id, title=body.title, description=body.description
    )
    return VersionOut.from_model(version)


@router.post("/{track_id}/versions/{version_id}/pin", response_model=PinOut)
def pin_track_version(
    track_id: int,
    version_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    track = get_owned_track(db, track_id, user_id)
    version = version_manager.pin(db, track.id, version_id)
    return PinOut(
        message="Version pinned successfully",
        version=VersionOut.from_model(version),
        track=TrackOut.from_model(version.track),
    )
