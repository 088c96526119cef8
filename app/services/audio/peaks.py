"""
Peak extraction: decode an audio file and reduce it to normalized peaks at
a fixed cadence (peaks per second).

Every failure mode (missing file, codec error, empty audio, timeout) is
reported as ExtractionFailed. Callers treat that as non-fatal and persist
the track without waveform data.
"""
import asyncio
import math
import os
from dataclasses import dataclass
from typing import List, Optional

import librosa
import numpy as np

from app.core.config import settings
from app.core.errors import ExtractionFailed
from app.core.logging import logger
from app.services.audio.io import scoped_audio_file


@dataclass
class ExtractedPeaks:
    peaks: List[float]
    duration: float          # seconds
    sample_rate: int         # peaks per second


def window_peaks(samples: np.ndarray, count: int) -> np.ndarray:
    """Max |sample| over `count` windows bounded at floor(i * len / count)."""
    n = len(samples)
    if count <= 0 or n == 0:
        return np.zeros(max(count, 0), dtype=np.float32)
    mags = np.abs(samples)
    bounds = (np.arange(count + 1, dtype=np.int64) * n) // count
    out = np.zeros(count, dtype=np.float32)
    for i in range(count):
        start, end = bounds[i], bounds[i + 1]
        if end > start:
            out[i] = mags[start:end].max()
    return np.clip(out, 0.0, 1.0)


def normalize_peaks(peaks: np.ndarray, min_peak: float) -> np.ndarray:
    # scale to the loudest window, keep quiet passages visible
    top = float(peaks.max()) if peaks.size else 0.0
    scaled = peaks / top if top > 0 else np.zeros_like(peaks)
    return np.clip(np.maximum(scaled, min_peak), 0.0, 1.0)


def extract_peaks(
    path: str,
    rate: Optional[int] = None,
    decode_sr: Optional[int] = None,
    normalize: Optional[bool] = None,
) -> ExtractedPeaks:
    rate = int(rate or settings.WAVEFORM_SAMPLES_PER_SECOND)
    decode_sr = int(decode_sr or settings.WAVEFORM_DECODE_SR)
    normalize = settings.WAVEFORM_NORMALIZE if normalize is None else normalize
    if rate <= 0:
        raise ValueError(f"rate must be positive, got {rate}")

    try:
        y, sr = librosa.load(path, sr=decode_sr, mono=True)
    except Exception as e:
        raise ExtractionFailed(f"decode failed for {path}: {e}") from e

    if y.size == 0 or sr <= 0:
        raise ExtractionFailed(f"no audio samples in {path}")
    if not np.all(np.isfinite(y)):
        y = np.nan_to_num(y, nan=0.0, posinf=1.0, neginf=-1.0)

    duration = float(y.size) / float(sr)
    count = math.ceil(duration * rate)
    peaks = window_peaks(y, count)
    if normalize:
        peaks = normalize_peaks(peaks, settings.WAVEFORM_MIN_PEAK)

    logger.debug(f"[peaks] {path} dur={duration:.2f}s peaks={count} rate={rate}")
    return ExtractedPeaks(peaks=[float(p) for p in peaks], duration=duration, sample_rate=rate)


def extract_peaks_from_bytes(data: bytes, filename: str = "", rate: Optional[int] = None) -> ExtractedPeaks:
    if not data:
        raise ExtractionFailed("empty upload")
    suffix = os.path.splitext(filename or "")[1].lower()
    with scoped_audio_file(data, suffix=suffix) as tmp_path:
        return extract_peaks(tmp_path, rate=rate)


async def extract_peaks_async(
    data: bytes,
    filename: str = "",
    rate: Optional[int] = None,
    timeout: Optional[float] = None,
) -> ExtractedPeaks:
    """
    Run extraction in a worker thread so decoding never blocks the event loop.
    A timeout is reported as ExtractionFailed; the thread still finishes and
    releases its temp file on its own.
    """
    timeout = settings.WAVEFORM_EXTRACT_TIMEOUT if timeout is None else timeout
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(extract_peaks_from_bytes, data, filename, rate),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise ExtractionFailed(f"extraction timed out after {timeout}s") from e
