"""Beat phase (offset) estimation."""

import logging
import math

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_OFFSET_SEC = 0.04
MIN_OFFSET_MAGNITUDE = 0.001


def beat_deviations(
    onsets: list[int],
    bpm: float,
    frame_size: int,
    sample_rate: int,
) -> np.ndarray:
    """Signed distance in seconds from each onset to its nearest beat."""
    if not onsets:
        return np.zeros(0)
    times = np.asarray(onsets, dtype=np.float64) * frame_size / sample_rate
    beats = times * bpm / 60.0
    return (beats - np.round(beats)) * 60.0 / bpm


def estimate_offset(
    onsets: list[int],
    bpm: float,
    frame_size: int,
    sample_rate: int,
    window_sec: float = 0.15,
    min_inliers: int = 5,
    default_offset: float = DEFAULT_OFFSET_SEC,
) -> float:
    """Mean onset-to-beat deviation over inliers within ``window_sec``.

    Falls back to ``default_offset`` when there are fewer than
    ``min_inliers`` inliers or the estimate is not finite or is
    indistinguishable from zero.
    """
    deviations = beat_deviations(onsets, bpm, frame_size, sample_rate)
    inliers = deviations[np.abs(deviations) <= window_sec]

    if len(inliers) < min_inliers:
        logger.debug(f"Only {len(inliers)} offset inliers; using default {default_offset}s")
        return default_offset

    offset = float(np.mean(inliers))
    if not math.isfinite(offset) or abs(offset) < MIN_OFFSET_MAGNITUDE:
        return default_offset
    return offset
