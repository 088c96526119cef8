import math

from app.api.routes import tracks as tracks_routes
from app.core.config import settings
from app.services import versions as version_manager
from tests.audio_fixtures import make_wav_bytes

OWNER = {"X-User-Id": "owner"}
GUEST = {"X-User-Id": "guest"}


def _upload_track(client, data=None, filename="song.wav", visibility="public"):
    return client.post(
        "/tracks",
        files={"file": (filename, data if data is not None else make_wav_bytes(seconds=1.5), "audio/wav")},
        data={"title": "Song", "visibility": visibility, "tags": "demo, rough"},
        headers=OWNER,
    )


def _upload_version(client, track_id, make_default, seconds=2.0):
    return client.post(
        f"/tracks/{track_id}/versions",
        files={"file": ("take.wav", make_wav_bytes(seconds=seconds), "audio/wav")},
        data={"makeDefault": "true" if make_default else "false", "title": "take"},
        headers=OWNER,
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_upload_track_stores_waveform(client):
    res = _upload_track(client)
    assert res.status_code == 201
    body = res.json()
    assert body["version"] == "001"
    assert body["tags"] == ["demo", "rough"]
    assert body["duration"] == 1.5
    wf = body["waveformData"]
    assert wf["sampleRate"] == 20
    assert len(wf["full"]) == math.ceil(1.5 * 20)
    assert len(wf["simplified"]) == 200
    assert body["fileUrl"].startswith("local://owner/")


def test_corrupt_upload_still_creates_track(client):
    res = _upload_track(client, data=b"\x00\x01garbage" * 100, filename="broken.wav")
    assert res.status_code == 201
    body = res.json()
    assert body["waveformData"] is None
    assert body["duration"] is None

    bars = client.get(f"/tracks/{body['id']}/waveform", params={"width": 30}).json()
    assert bars["isPlaceholder"] is True
    assert bars["barCount"] == 10


def test_upload_requires_auth_and_audio_extension(client):
    res = client.post("/tracks", files={"file": ("a.wav", make_wav_bytes(), "audio/wav")})
    assert res.status_code == 401
    res = client.post("/tracks", files={"file": ("notes.txt", b"hello", "text/plain")}, headers=OWNER)
    assert res.status_code == 400


def test_private_track_hidden_from_others(client):
    track_id = _upload_track(client, visibility="private").json()["id"]
    assert client.get(f"/tracks/{track_id}", headers=OWNER).status_code == 200
    res = client.get(f"/tracks/{track_id}", headers=GUEST)
    assert res.status_code == 404
    assert res.json()["error"] == "Track not found"


def test_version_flow_and_pinning(client):
    track_id = _upload_track(client).json()["id"]

    v1 = _upload_version(client, track_id, make_default=False).json()["version"]
    assert v1["versionNumber"] == 1 and v1["isPinned"] is False
    assert client.get(f"/tracks/{track_id}").json()["version"] == "001"

    v2 = _upload_version(client, track_id, make_default=True, seconds=3.0).json()["version"]
    assert v2["isPinned"] is True
    track = client.get(f"/tracks/{track_id}").json()
    assert track["version"] == "002"
    assert track["duration"] == 3.0
    assert track["fileUrl"] == v2["fileUrl"]

    res = client.post(f"/tracks/{track_id}/versions/{v1['id']}/pin", headers=OWNER)
    assert res.status_code == 200
    body = res.json()
    assert body["version"]["id"] == v1["id"]
    assert body["track"]["version"] == "001"
    assert body["track"]["fileUrl"] == v1["fileUrl"]

    listed = client.get(f"/tracks/{track_id}/versions", headers=OWNER).json()["versions"]
    assert [v["versionNumber"] for v in listed] == [1, 2]
    assert [v["isPinned"] for v in listed] == [True, False]
    assert listed[0]["filename"] == "take.wav"


def test_version_listing_hides_filename_from_non_owner(client):
    track_id = _upload_track(client).json()["id"]
    _upload_version(client, track_id, make_default=False)
    listed = client.get(f"/tracks/{track_id}/versions", headers=GUEST).json()["versions"]
    assert "filename" not in listed[0]
    assert listed[0]["fileUrl"]


def test_pin_errors(client):
    track_id = _upload_track(client).json()["id"]
    res = client.post(f"/tracks/{track_id}/versions/9999/pin", headers=OWNER)
    assert res.status_code == 404
    assert res.json()["error"] == "Version not found"

    v1 = _upload_version(client, track_id, make_default=False).json()["version"]
    res = client.post(f"/tracks/{track_id}/versions/{v1['id']}/pin", headers=GUEST)
    assert res.status_code == 403


def test_patch_version(client):
    track_id = _upload_track(client).json()["id"]
    v1 = _upload_version(client, track_id, make_default=False).json()["version"]
    res = client.patch(
        f"/tracks/{track_id}/versions/{v1['id']}", json={"description": "vocals up"}, headers=OWNER
    )
    assert res.status_code == 200
    assert res.json()["description"] == "vocals up"
    assert res.json()["title"] == "take"


def test_waveform_for_historical_version(client):
    track_id = _upload_track(client).json()["id"]
    v1 = _upload_version(client, track_id, make_default=False).json()["version"]
    res = client.get(f"/tracks/{track_id}/waveform", params={"width": 60, "version_id": v1["id"]})
    body = res.json()
    assert body["isPlaceholder"] is False
    assert body["barCount"] == 20
    assert body["duration"] == 2.0
    assert all(0.0 <= p <= 1.0 for p in body["peaks"])


def test_comments_follow_viewed_version(client):
    track_id = _upload_track(client).json()["id"]
    _upload_version(client, track_id, make_default=False)
    _upload_version(client, track_id, make_default=True, seconds=4.0)

    c = client.post(f"/tracks/{track_id}/comments", json={"content": "hook!", "timestamp": 1.0}, headers=GUEST)
    assert c.status_code == 201
    assert c.json()["version"] == "002"
    assert c.json()["markerPosition"] == 0.25

    client.post(f"/tracks/{track_id}/comments", json={"content": "old", "version": "001"}, headers=GUEST)

    on_v2 = client.get(f"/tracks/{track_id}/comments", params={"version": "002"}).json()
    assert [x["content"] for x in on_v2] == ["hook!"]
    on_v1 = client.get(f"/tracks/{track_id}/comments", params={"version": "001"}).json()
    assert [x["content"] for x in on_v1] == ["old"]
    assert len(client.get(f"/tracks/{track_id}/comments").json()) == 2

    res = client.delete(f"/tracks/{track_id}/comments/{c.json()['id']}", headers=OWNER)
    assert res.status_code == 403
    res = client.delete(f"/tracks/{track_id}/comments/{c.json()['id']}", headers=GUEST)
    assert res.json() == {"success": True}


def test_regenerate_enqueues_job_for_operator(client, monkeypatch):
    monkeypatch.setattr(tracks_routes, "enqueue_regeneration", lambda limit: "job-123")
    monkeypatch.setattr(settings, "OPERATOR_USER_IDS", ["ops"])
    res = client.post("/tracks/waveforms/regenerate", headers={"X-User-Id": "ops"})
    assert res.status_code == 202
    assert res.json() == {"job_id": "job-123", "status": "queued"}


def test_regenerate_rejects_regular_users(client, monkeypatch):
    monkeypatch.setattr(tracks_routes, "enqueue_regeneration", lambda limit: "job-123")
    monkeypatch.setattr(settings, "OPERATOR_USER_IDS", ["ops"])
    res = client.post("/tracks/waveforms/regenerate", headers=OWNER)
    assert res.status_code == 403
    assert client.post("/tracks/waveforms/regenerate").status_code == 401


def test_version_number_conflict_returns_409_and_drops_file(client, storage, monkeypatch):
    track_id = _upload_track(client).json()["id"]
    assert _upload_version(client, track_id, make_default=False).status_code == 201
    stored = sorted(p for p in storage.root.rglob("*") if p.is_file())

    monkeypatch.setattr(version_manager, "_next_version_number", lambda session, track_id: 1)
    monkeypatch.setattr(settings, "VERSION_RETRY_BACKOFF", 0.0)
    res = _upload_version(client, track_id, make_default=False)

    assert res.status_code == 409
    assert res.json()["error"] == "Version conflict"
    assert sorted(p for p in storage.root.rglob("*") if p.is_file()) == stored
