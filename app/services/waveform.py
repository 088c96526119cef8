from typing import Optional, Tuple

from app.core.config import settings
from app.core.errors import ExtractionFailed
from app.core.logging import logger
from app.schemas.waveform import WaveformRecord
from app.services.audio.decimate import simplify
from app.services.audio.peaks import ExtractedPeaks, extract_peaks_async


def build_record(extracted: ExtractedPeaks, simplified_points: Optional[int] = None) -> dict:
    points = simplified_points or settings.WAVEFORM_SIMPLIFIED_POINTS
    record = WaveformRecord(
        full=extracted.peaks,
        simplified=simplify(extracted.peaks, points),
        sampleRate=extracted.sample_rate,
    )
    return record.model_dump()


async def waveform_for_upload(data: bytes, filename: str) -> Tuple[Optional[dict], Optional[float]]:
    """
    (waveform_data, duration) for an upload, or (None, None) when extraction
    fails. Uploads never fail because of the waveform.
    """
    try:
        extracted = await extract_peaks_async(data, filename)
    except ExtractionFailed as e:
        logger.warning(f"[waveform] extraction failed for '{filename}', continuing without waveform: {e}")
        return None, None
    return build_record(extracted), extracted.duration
