"""Synthetic beat grid for tracks with too few detected onsets."""


def generate_beat_grid(
    bpm: float,
    total_duration: float,
    frame_size: int,
    sample_rate: int,
    offset_sec: float = 0.0,
) -> list[int]:
    """Frame indices of evenly spaced beats every 60/bpm seconds.

    Beats start at ``offset_sec`` so that offset correction in the note
    generator lands them on whole beats.
    """
    if bpm <= 0 or total_duration <= 0:
        return []

    seconds_per_beat = 60.0 / bpm
    frames: list[int] = []
    k = 0
    while True:
        t = offset_sec + k * seconds_per_beat
        if t >= total_duration:
            break
        k += 1
        if t < 0:
            continue
        frame = int(t * sample_rate / frame_size)
        if not frames or frame != frames[-1]:
            frames.append(frame)
    return frames


def merge_onsets(real: list[int], synthetic: list[int]) -> list[int]:
    """Sorted union of real and synthetic onset frames."""
    return sorted(set(real) | set(synthetic))
