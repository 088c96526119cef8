"""Render-time helpers: bar counts, clamping and the no-data placeholder."""
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from app.services.audio.decimate import sample

DEFAULT_BAR_WIDTH = 2
DEFAULT_BAR_GAP = 1
PLACEHOLDER_POINTS = 50


@dataclass(frozen=True)
class RenderedWaveform:
    peaks: List[float]
    is_placeholder: bool


def bar_count_for_width(width: float, bar_width: float = DEFAULT_BAR_WIDTH, bar_gap: float = DEFAULT_BAR_GAP) -> int:
    step = bar_width + bar_gap
    if width <= 0 or step <= 0:
        return 0
    return int(math.floor(width / step))


def clamp_peaks(peaks: Sequence[float]) -> List[float]:
    arr = np.nan_to_num(np.asarray(peaks, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    return [float(p) for p in np.clip(arr, 0.0, 1.0)]


def placeholder_peaks(count: int = PLACEHOLDER_POINTS, seed: Optional[int] = None) -> List[float]:
    """Decorative envelope for tracks without extracted data. Never real audio."""
    if count <= 0:
        return []
    rng = np.random.default_rng(seed)
    position = np.arange(count) / count
    amplitude = np.sin(position * np.pi) * 0.5 + 0.3
    variation = rng.random(count) * 0.3
    return [float(p) for p in np.clip(amplitude + variation, 0.1, 1.0)]


def render_waveform(
    waveform_data: Optional[dict],
    width: float,
    bar_width: float = DEFAULT_BAR_WIDTH,
    bar_gap: float = DEFAULT_BAR_GAP,
    seed: Optional[int] = None,
) -> RenderedWaveform:
    bars = bar_count_for_width(width, bar_width, bar_gap)
    source: Sequence[float] = ()
    if waveform_data:
        source = waveform_data.get("full") or waveform_data.get("simplified") or ()
    if not source:
        return RenderedWaveform(peaks=sample(placeholder_peaks(seed=seed), bars), is_placeholder=True)
    return RenderedWaveform(peaks=clamp_peaks(sample(source, bars)), is_placeholder=False)
