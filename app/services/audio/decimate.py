"""
Max-per-bucket decimation of peak sequences.

Averaging would flatten short transients (drum hits) at low resolution, so
each output bucket keeps the tallest input peak it covers.
"""
from typing import List, Sequence


def _bucket_max(peaks: Sequence[float], count: int) -> List[float]:
    n = len(peaks)
    out: List[float] = []
    for i in range(count):
        start = (i * n) // count
        end = ((i + 1) * n) // count
        # empty bucket when n < count
        out.append(float(max(peaks[start:end])) if end > start else 0.0)
    return out


def simplify(peaks: Sequence[float], target_count: int) -> List[float]:
    """Reduce peaks to exactly `target_count` points for storage."""
    if target_count <= 0:
        return []
    if len(peaks) == target_count:
        return list(peaks)
    return _bucket_max(peaks, target_count)


def sample(peaks: Sequence[float], bar_count: int) -> List[float]:
    """Render-time resample to the number of bars that fit the current width."""
    return simplify(peaks, bar_count)
