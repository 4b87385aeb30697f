"""Onset detection on frame energies."""

import numpy as np


def detect_onsets(energies: np.ndarray, threshold_factor: float = 1.1) -> list[int]:
    """Return frame indices of local energy maxima above ``mean * threshold_factor``.

    The first and last frames are never onsets. A lower factor finds more
    onsets at the cost of more false positives.
    """
    energies = np.asarray(energies, dtype=np.float64)
    if len(energies) < 3:
        return []

    threshold = float(np.mean(energies)) * threshold_factor
    center = energies[1:-1]
    is_peak = (
        (center > threshold)
        & (center >= energies[:-2])
        & (center >= energies[2:])
    )
    return [int(i) + 1 for i in np.flatnonzero(is_peak)]
