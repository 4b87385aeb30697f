"""Coarse intro/body/outro segmentation from frame energies."""

import numpy as np

from beatchart.analysis.models import Structure


def analyze_structure(
    energies: np.ndarray,
    times: np.ndarray,
    duration: float | None = None,
    quiet_ratio: float = 0.7,
    intro_end_ratio: float = 0.05,
    quiet_intro_end_ratio: float = 0.12,
    outro_start_ratio: float = 0.90,
    quiet_outro_start_ratio: float = 0.85,
) -> Structure:
    """Place intro/outro boundaries as fractions of the track duration.

    The first and last thirds of the track are compared with the global mean
    energy. A third below ``quiet_ratio`` of the mean counts as a quiet
    intro/outro and gets the wider boundary; otherwise the short default
    boundary is used.
    """
    energies = np.asarray(energies, dtype=np.float64)
    times = np.asarray(times, dtype=np.float64)

    if duration is not None:
        total = float(duration)
    elif len(times) > 1:
        total = float(times[-1] + (times[1] - times[0]))
    elif len(times) == 1:
        total = float(times[0])
    else:
        total = 0.0

    quiet_intro = quiet_outro = False
    n = len(energies)
    third = n // 3
    global_mean = float(np.mean(energies)) if n else 0.0
    if third > 0 and global_mean > 0:
        intro_mean = float(np.mean(energies[:third]))
        outro_mean = float(np.mean(energies[n - third:]))
        quiet_intro = intro_mean < quiet_ratio * global_mean
        quiet_outro = outro_mean < quiet_ratio * global_mean

    intro_end = total * (quiet_intro_end_ratio if quiet_intro else intro_end_ratio)
    outro_start = total * (quiet_outro_start_ratio if quiet_outro else outro_start_ratio)

    return Structure(
        total_duration=total,
        intro_end=intro_end,
        outro_start=outro_start,
        quiet_intro=quiet_intro,
        quiet_outro=quiet_outro,
    )
