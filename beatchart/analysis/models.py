"""Core data models for chart generation."""

from dataclasses import dataclass, field

import numpy as np

NOTE_TAP = "tap"
NOTE_LONG = "long"
NOTE_MARKER = "marker"

PLAYABLE_LANES = 4
MARKER_LANE = 4  # reserved, never hit by the player


@dataclass
class PcmBuffer:
    """Decoded audio: ``samples`` has shape (channels, n_samples)."""
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        samples = np.asarray(self.samples, dtype=np.float64)
        if samples.ndim == 1:
            samples = samples[np.newaxis, :]
        if samples.ndim != 2:
            raise ValueError(f"samples must be 1-D or 2-D, got shape {samples.shape}")
        self.samples = samples

    @classmethod
    def from_mono(cls, audio: np.ndarray, sample_rate: int) -> "PcmBuffer":
        return cls(samples=np.asarray(audio)[np.newaxis, :], sample_rate=sample_rate)

    @property
    def n_channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def n_samples(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        return self.n_samples / self.sample_rate

    def channel(self, index: int = 0) -> np.ndarray:
        return self.samples[index]


@dataclass
class EnergyFrames:
    """Per-frame energy with the start time of each frame."""
    energies: np.ndarray
    times: np.ndarray
    frame_size: int
    sample_rate: int

    def __len__(self) -> int:
        return len(self.energies)


@dataclass
class Structure:
    """Intro/outro boundaries, all in seconds."""
    total_duration: float
    intro_end: float
    outro_start: float
    quiet_intro: bool = False
    quiet_outro: bool = False


@dataclass(frozen=True)
class Note:
    """A single chart note. ``end_beat`` is set only for long notes."""
    lane: int
    beat: float
    type: str = NOTE_TAP
    end_beat: float | None = None

    @property
    def is_long(self) -> bool:
        return self.type == NOTE_LONG


@dataclass
class GeneratedNotes:
    """Note generator output for both difficulty tiers."""
    easy: list[Note]
    hard: list[Note]
    markers: list[Note] = field(default_factory=list)


@dataclass
class Chart:
    """Complete chart for one track."""
    title: str
    bpm: int
    offset_sec: float
    structure: Structure
    easy: list[Note]
    hard: list[Note]
    markers: list[Note] = field(default_factory=list)
    onset_count: int = 0
    synthetic_beats: bool = False
