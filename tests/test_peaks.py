import asyncio
import math
import tempfile
import time

import numpy as np
import pytest
import soundfile as sf

from app.core.errors import ExtractionFailed
from app.services.audio import peaks as peaks_module
from app.services.audio.peaks import (
    extract_peaks,
    extract_peaks_async,
    extract_peaks_from_bytes,
    window_peaks,
)
from tests.audio_fixtures import SR, make_wav_bytes


def _write(path, y, sr=SR):
    sf.write(str(path), np.asarray(y, dtype=np.float32), sr, subtype="PCM_16")
    return str(path)


def test_peak_count_is_duration_times_rate(tmp_path):
    path = tmp_path / "two.wav"
    path.write_bytes(make_wav_bytes(seconds=2.0))
    out = extract_peaks(str(path), rate=20)
    assert out.sample_rate == 20
    assert out.duration == pytest.approx(2.0)
    assert len(out.peaks) == 40
    assert all(0.0 <= p <= 1.0 for p in out.peaks)


def test_partial_last_window_rounds_up(tmp_path):
    path = tmp_path / "odd.wav"
    path.write_bytes(make_wav_bytes(seconds=1.03))
    out = extract_peaks(str(path), rate=20)
    assert len(out.peaks) == math.ceil(out.duration * 20) == 21


def test_transient_lands_in_its_window(tmp_path):
    y = np.zeros(2 * SR, dtype=np.float32)
    y[int(0.55 * SR)] = 0.8
    path = _write(tmp_path / "click.wav", y)
    out = extract_peaks(path, rate=20, normalize=False)
    assert out.peaks[11] == pytest.approx(0.8, abs=1e-3)
    assert sum(out.peaks) == pytest.approx(out.peaks[11])


def test_normalized_peaks_reach_one_and_keep_a_floor(tmp_path):
    y = np.zeros(SR, dtype=np.float32)
    y[SR // 2:] = 0.25
    path = _write(tmp_path / "step.wav", y)
    out = extract_peaks(path, rate=10, normalize=True)
    assert max(out.peaks) == pytest.approx(1.0)
    assert min(out.peaks) >= 0.02


def test_window_peaks_handles_more_windows_than_samples():
    out = window_peaks(np.array([0.5, -0.7], dtype=np.float32), 4)
    assert out.tolist() == pytest.approx([0.0, 0.5, 0.0, 0.7])


def test_corrupt_bytes_raise_extraction_failed():
    with pytest.raises(ExtractionFailed):
        extract_peaks_from_bytes(b"definitely not a riff header" * 10, "broken.wav")


def test_empty_upload_raises_extraction_failed():
    with pytest.raises(ExtractionFailed):
        extract_peaks_from_bytes(b"", "empty.wav")


def test_zero_length_audio_raises_extraction_failed(tmp_path):
    path = _write(tmp_path / "silent.wav", np.zeros(0))
    with pytest.raises(ExtractionFailed):
        extract_peaks(path)


def test_temp_file_removed_on_success_and_failure(tmp_path, monkeypatch):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))

    extract_peaks_from_bytes(make_wav_bytes(seconds=0.5), "ok.wav")
    with pytest.raises(ExtractionFailed):
        extract_peaks_from_bytes(b"garbage" * 64, "bad.wav")

    assert list(scratch.glob("waveform-*")) == []


def test_async_timeout_is_extraction_failed(monkeypatch):
    def slow(data, filename="", rate=None):
        time.sleep(0.3)

    monkeypatch.setattr(peaks_module, "extract_peaks_from_bytes", slow)
    with pytest.raises(ExtractionFailed):
        asyncio.run(extract_peaks_async(b"x", "a.wav", timeout=0.01))


def test_async_extraction_returns_peaks():
    out = asyncio.run(extract_peaks_async(make_wav_bytes(seconds=1.0), "a.wav", rate=20))
    assert len(out.peaks) == 20
