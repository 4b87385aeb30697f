"""Shared test fixtures for chart generation tests."""

import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from beatchart.analysis.models import PcmBuffer
from beatchart.main import app


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def generate_spike_track(
    bpm: float = 120,
    duration_seconds: float = 30.0,
    sr: int = 44100,
    spike_samples: int = 32,
    amplitude: float = 0.8,
    first_beat: int = 1,
) -> np.ndarray:
    """Generate silence with a short constant-amplitude burst on every beat.

    Bursts start at ``first_beat`` beats so none falls in the first frame.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)
    beat_interval = 60.0 / bpm

    beat = first_beat
    while beat * beat_interval < duration_seconds:
        pos = int(round(beat * beat_interval * sr))
        end = min(pos + spike_samples, n_samples)
        audio[pos:end] = amplitude
        beat += 1
    return audio


def generate_click_track(
    bpm: float,
    duration_seconds: float = 10.0,
    sr: int = 22050,
) -> np.ndarray:
    """Decaying 1 kHz clicks on every beat, peak-normalized."""
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)
    click_samples = int(0.02 * sr)
    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 100)

    time = 60.0 / bpm
    while time < duration_seconds:
        pos = int(time * sr)
        end = min(pos + click_samples, n_samples)
        audio[pos:end] += click[:end - pos]
        time += 60.0 / bpm

    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak
    return audio


def wav_bytes(audio: np.ndarray, sr: int) -> bytes:
    """Encode mono or (n, channels) audio as an in-memory WAV file."""
    buf = io.BytesIO()
    sf.write(buf, audio, sr, format="WAV")
    return buf.getvalue()


@pytest.fixture
def spike_buffer_120():
    """30s at 44100 Hz with a burst every 0.5s (120 BPM)."""
    return PcmBuffer.from_mono(generate_spike_track(bpm=120, duration_seconds=30.0), 44100)


@pytest.fixture
def silent_buffer():
    """30s of digital silence."""
    return PcmBuffer.from_mono(np.zeros(30 * 44100, dtype=np.float32), 44100)
