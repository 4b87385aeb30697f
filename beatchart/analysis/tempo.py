"""Tempo estimation by clustering onset intervals."""

import logging

logger = logging.getLogger(__name__)

FALLBACK_BPM = 120


def onset_intervals(onsets: list[int]) -> list[int]:
    """Frame differences between consecutive onsets."""
    return [b - a for a, b in zip(onsets, onsets[1:])]


def cluster_intervals(intervals: list[int], tolerance: int = 2) -> list[tuple[int, int]]:
    """Group intervals into ``(representative, count)`` clusters.

    Each interval joins the first cluster whose representative is within
    ``tolerance``, otherwise it starts a new cluster. Representatives stay at
    the first value seen and clusters keep insertion order.
    """
    clusters: list[list[int]] = []
    for interval in intervals:
        for cluster in clusters:
            if abs(interval - cluster[0]) <= tolerance:
                cluster[1] += 1
                break
        else:
            clusters.append([interval, 1])
    return [(rep, count) for rep, count in clusters]


def normalize_bpm(bpm: float, min_bpm: float = 80, max_bpm: float = 180) -> int:
    """Fold a BPM into [min_bpm, max_bpm) by octaves and round it."""
    if bpm <= 0:
        return FALLBACK_BPM
    while bpm < min_bpm:
        bpm *= 2
    while bpm >= max_bpm:
        bpm /= 2
    rounded = int(round(bpm))
    if rounded >= max_bpm:
        # 179.6 rounds onto the upper bound
        rounded = int(round(bpm / 2))
    return rounded


def estimate_bpm(
    onsets: list[int],
    frame_size: int,
    sample_rate: int,
    tolerance: int = 2,
    min_bpm: float = 80,
    max_bpm: float = 180,
) -> int:
    """Estimate a whole-track BPM from the dominant onset interval.

    Returns ``FALLBACK_BPM`` when fewer than two onsets are available.
    """
    if len(onsets) < 2:
        return FALLBACK_BPM

    clusters = cluster_intervals(onset_intervals(onsets), tolerance)
    if not clusters:
        return FALLBACK_BPM

    # max() keeps the earliest cluster on ties
    interval, count = max(clusters, key=lambda c: c[1])
    if interval <= 0:
        return FALLBACK_BPM

    seconds_per_beat = interval * frame_size / sample_rate
    raw_bpm = 60.0 / seconds_per_beat
    bpm = normalize_bpm(raw_bpm, min_bpm, max_bpm)
    logger.debug(f"Dominant interval {interval} frames ({count} hits), "
                 f"raw {raw_bpm:.1f} BPM -> {bpm}")
    return bpm
