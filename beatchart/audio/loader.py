"""Audio acquisition and decoding."""

from __future__ import annotations

import logging
import threading
import urllib.error
import urllib.request
from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np

from beatchart.analysis.models import PcmBuffer

logger = logging.getLogger(__name__)

AudioSource = Union[str, Path, bytes, BytesIO]

_USER_AGENT = "beatchart/0.1 (chart generator)"


class AudioLoadError(Exception):
    """Base class for failures that abort a chart run."""


class AudioAcquisitionError(AudioLoadError):
    """The byte source could not be fetched or read."""


class AudioDecodeError(AudioLoadError):
    """The bytes were read but are not decodable audio."""


class AudioContext:
    """Decoder handle shared by every run of one engine.

    Starts suspended and is resumed on first decode.

    Parameters
    ----------
    sample_rate:
        Target sample rate. ``None`` keeps the file's native rate.
    """

    def __init__(self, sample_rate: int | None = None) -> None:
        self.sample_rate = sample_rate
        self.state = "suspended"
        self._lock = threading.Lock()

    def resume(self) -> None:
        if self.state != "running":
            logger.debug("Resuming audio context")
            self.state = "running"

    def decode(self, data: bytes) -> PcmBuffer:
        """Decode an encoded audio byte string into a PCM buffer."""
        with self._lock:
            if self.state != "running":
                self.resume()
            try:
                audio, sr = librosa.load(BytesIO(data), sr=self.sample_rate, mono=False)
            except Exception as e:
                raise AudioDecodeError(f"Could not decode audio: {e}") from e

        audio = np.asarray(audio)
        if audio.size == 0:
            raise AudioDecodeError("Decoded audio contains no samples")
        return PcmBuffer(samples=audio, sample_rate=int(sr))


def is_url(source: AudioSource) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def fetch_bytes(source: AudioSource, timeout: float = 30.0) -> bytes:
    """Resolve a URL, path, bytes or BytesIO source into raw bytes."""
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()

    if is_url(source):
        req = urllib.request.Request(source, headers={"User-Agent": _USER_AGENT})
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return resp.read()
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise AudioAcquisitionError(f"Failed to fetch {source}: {e}") from e

    try:
        return Path(source).read_bytes()
    except OSError as e:
        raise AudioAcquisitionError(f"Failed to read {source}: {e}") from e


def load_audio(
    source: AudioSource,
    context: AudioContext,
    timeout: float = 30.0,
) -> PcmBuffer:
    """Fetch and decode an audio source.

    Parameters
    ----------
    source:
        URL, file path, raw bytes or a BytesIO buffer containing encoded audio.
    context:
        Decoder handle owned by the caller.
    timeout:
        Network timeout in seconds for URL sources.

    Returns
    -------
    PcmBuffer
        All channels at the context's sample rate.

    Raises
    ------
    AudioAcquisitionError
        The source could not be fetched or read.
    AudioDecodeError
        The bytes are not valid audio.
    """
    data = fetch_bytes(source, timeout=timeout)
    if not data:
        raise AudioAcquisitionError("Audio source is empty")
    buffer = context.decode(data)
    logger.info(f"Loaded {buffer.duration:.1f}s of audio "
                f"({buffer.n_channels} ch, {buffer.sample_rate}Hz)")
    return buffer
