from pydantic import BaseModel, Field
from typing import List


class WaveformRecord(BaseModel):
    """Stored waveform: dense peaks, fixed-length preview, peaks per second."""

    full: List[float] = Field(default_factory=list)
    simplified: List[float] = Field(default_factory=list)
    sampleRate: int


class RenderedWaveformOut(BaseModel):
    peaks: List[float]
    barCount: int
    isPlaceholder: bool
    duration: float | None = None
