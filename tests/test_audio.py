"""Tests for audio acquisition, decoding and band filtering."""

import io
import urllib.error
import urllib.request

import numpy as np
import pytest

from beatchart.analysis.models import PcmBuffer
from beatchart.audio import loader
from beatchart.audio.loader import (
    AudioAcquisitionError,
    AudioContext,
    AudioDecodeError,
    fetch_bytes,
    load_audio,
)
from beatchart.audio.preprocessing import drum_band_mix, filter_buffer
from tests.conftest import wav_bytes


def _sine(freq, sr=22050, seconds=1.0):
    t = np.arange(int(sr * seconds)) / sr
    return 0.5 * np.sin(2 * np.pi * freq * t)


def _rms(x):
    return float(np.sqrt(np.mean(np.square(x))))


def test_load_mono_file(tmp_path):
    path = tmp_path / "tone.wav"
    path.write_bytes(wav_bytes(_sine(440), 22050))

    context = AudioContext()
    assert context.state == "suspended"
    buffer = load_audio(path, context)

    assert context.state == "running"
    assert buffer.sample_rate == 22050
    assert buffer.n_channels == 1
    assert buffer.n_samples == 22050
    assert buffer.duration == pytest.approx(1.0)


def test_load_stereo_keeps_channels():
    stereo = np.stack([_sine(440), _sine(880)], axis=1)
    buffer = load_audio(wav_bytes(stereo, 22050), AudioContext())
    assert buffer.n_channels == 2
    assert buffer.n_samples == 22050


def test_context_resamples():
    buffer = load_audio(io.BytesIO(wav_bytes(_sine(440), 22050)), AudioContext(sample_rate=11025))
    assert buffer.sample_rate == 11025
    assert abs(buffer.n_samples - 11025) <= 1


def test_missing_file_is_acquisition_error(tmp_path):
    with pytest.raises(AudioAcquisitionError):
        load_audio(tmp_path / "nope.wav", AudioContext())


def test_empty_source_is_acquisition_error():
    with pytest.raises(AudioAcquisitionError):
        load_audio(b"", AudioContext())


def test_garbage_is_decode_error():
    with pytest.raises(AudioDecodeError):
        load_audio(b"\x00\x01not a wav file at all", AudioContext())


def test_url_fetch_failure(monkeypatch):
    def _refuse(*args, **kwargs):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(loader.urllib.request, "urlopen", _refuse)
    with pytest.raises(AudioAcquisitionError, match="connection refused"):
        fetch_bytes("https://example.com/song.wav")


def test_url_fetch_success(monkeypatch):
    payload = wav_bytes(_sine(440), 22050)
    seen = {}

    class _Response(io.BytesIO):
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    def _fake_urlopen(req, timeout=None):
        seen["ua"] = req.get_header("User-agent")
        seen["timeout"] = timeout
        return _Response(payload)

    monkeypatch.setattr(loader.urllib.request, "urlopen", _fake_urlopen)
    buffer = load_audio("https://example.com/song.wav", AudioContext(), timeout=5.0)

    assert buffer.sample_rate == 22050
    assert seen["timeout"] == 5.0
    assert seen["ua"].startswith("beatchart")


def test_lowpass_attenuates_high_frequencies():
    sr = 22050
    buffer = PcmBuffer.from_mono(_sine(3000, sr), sr)
    filtered = filter_buffer(buffer, "lowpass", 0.0, 150.0)
    assert filtered.samples.shape == buffer.samples.shape
    assert filtered.sample_rate == sr
    assert _rms(filtered.channel(0)) < 0.01 * _rms(buffer.channel(0))


def test_bandpass_keeps_in_band_tone():
    sr = 22050
    in_band = filter_buffer(PcmBuffer.from_mono(_sine(400, sr), sr), "bandpass", 150.0, 800.0)
    out_band = filter_buffer(PcmBuffer.from_mono(_sine(5000, sr), sr), "bandpass", 150.0, 800.0)
    # skip the filter's start-up transient
    assert _rms(in_band.channel(0)[sr // 10:]) > 0.25
    assert _rms(out_band.channel(0)[sr // 10:]) < 0.01


def test_filter_rejects_bad_arguments():
    buffer = PcmBuffer.from_mono(_sine(440), 22050)
    with pytest.raises(ValueError):
        filter_buffer(buffer, "highpass", 100.0, 200.0)
    with pytest.raises(ValueError):
        filter_buffer(buffer, "bandpass", 900.0, 800.0)


def test_drum_band_mix_preserves_shape():
    sr = 22050
    stereo = np.vstack([_sine(100, sr), _sine(400, sr)])
    buffer = PcmBuffer(samples=stereo, sample_rate=sr)
    mixed = drum_band_mix(buffer)
    assert mixed.samples.shape == stereo.shape
    assert mixed.sample_rate == sr
    assert _rms(mixed.channel(0)) > 0.1
