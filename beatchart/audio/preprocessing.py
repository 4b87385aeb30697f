"""Band filtering of PCM buffers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy.signal import butter, sosfilt

from beatchart.analysis.models import PcmBuffer

FILTER_KINDS = ("lowpass", "bandpass")


def _clamp_cutoff(freq: float, sr: int) -> float:
    nyquist = sr / 2.0
    return min(freq, nyquist * 0.99)


def filter_buffer(
    buffer: PcmBuffer,
    kind: str,
    low_hz: float,
    high_hz: float,
    order: int = 4,
) -> PcmBuffer:
    """Apply a Butterworth filter to every channel.

    Parameters
    ----------
    buffer:
        Input audio.
    kind:
        ``"lowpass"`` (cutoff ``high_hz``, ``low_hz`` ignored) or
        ``"bandpass"`` (``low_hz`` to ``high_hz``).
    low_hz, high_hz:
        Band edges in Hz. Edges above Nyquist are clamped just below it.

    Returns a new buffer with the same length and sample rate.
    """
    sr = buffer.sample_rate
    high = _clamp_cutoff(high_hz, sr)
    if kind == "lowpass":
        sos = butter(N=order, Wn=high, btype="low", fs=sr, output="sos")
    elif kind == "bandpass":
        if not 0 < low_hz < high:
            raise ValueError(f"Invalid band {low_hz}-{high_hz} Hz at {sr} Hz")
        sos = butter(N=order, Wn=[low_hz, high], btype="band", fs=sr, output="sos")
    else:
        raise ValueError(f"Unknown filter kind {kind!r}, expected one of {FILTER_KINDS}")

    filtered = sosfilt(sos, buffer.samples, axis=-1)
    return PcmBuffer(samples=filtered, sample_rate=sr)


def drum_band_mix(
    buffer: PcmBuffer,
    kick_high_hz: float = 150.0,
    snare_low_hz: float = 150.0,
    snare_high_hz: float = 800.0,
) -> PcmBuffer:
    """Sum a kick-band low-pass and a snare-band band-pass rendering.

    The two passes are independent and run concurrently.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        kick_future = pool.submit(filter_buffer, buffer, "lowpass", 0.0, kick_high_hz)
        snare_future = pool.submit(filter_buffer, buffer, "bandpass", snare_low_hz, snare_high_hz)
        kick = kick_future.result()
        snare = snare_future.result()

    mixed = np.add(kick.samples, snare.samples)
    return PcmBuffer(samples=mixed, sample_rate=buffer.sample_rate)
