"""Frame energy extraction."""

import numpy as np

from beatchart.analysis.models import EnergyFrames, PcmBuffer


def compute_energy(buffer: PcmBuffer, frame_size: int = 512) -> EnergyFrames:
    """Sum of squared samples per non-overlapping frame of channel 0.

    The last frame is zero-padded, so there are ceil(n_samples / frame_size)
    frames.
    """
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")

    samples = buffer.channel(0)
    n_frames = -(-len(samples) // frame_size)
    padded = np.zeros(n_frames * frame_size, dtype=np.float64)
    padded[:len(samples)] = samples

    energies = np.sum(padded.reshape(n_frames, frame_size) ** 2, axis=1)
    times = np.arange(n_frames) * frame_size / buffer.sample_rate

    return EnergyFrames(
        energies=energies,
        times=times,
        frame_size=frame_size,
        sample_rate=buffer.sample_rate,
    )
