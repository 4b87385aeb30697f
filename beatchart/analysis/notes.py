"""Constraint-driven note placement for two difficulty tiers.

Candidates are onset frame indices (real or synthetic). Each candidate is
converted to an offset-corrected beat and then passes, in order:

1. pre-song rejection (negative corrected time)
2. intro/outro rejection
3. minimum spacing from the last accepted note
4. weighted lane choice (middle fingers favoured)
5. same-lane long-note exclusion with a margin on both ends
6. long-note eligibility (gap since the last long note and a loud frame)
7. quiet-frame rejection
8. long or tap emission

All randomness comes from one ``numpy.random.Generator`` so a seeded
generator reproduces a chart exactly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from beatchart.analysis.models import (
    MARKER_LANE,
    NOTE_LONG,
    NOTE_MARKER,
    NOTE_TAP,
    PLAYABLE_LANES,
    GeneratedNotes,
    Note,
    Structure,
)

logger = logging.getLogger(__name__)


@dataclass
class NoteRules:
    """Placement thresholds. Spacing values are in beats."""
    min_spacing: float = 0.25
    long_margin: float = 0.2
    long_min_gap: float = 0.5
    loud_ratio: float = 0.75
    quiet_ratio: float = 0.15
    long_probability: float = 0.20
    long_min_beats: float = 1.0
    long_max_beats: float = 3.0
    lane_weights: tuple[float, float, float, float] = (0.15, 0.35, 0.35, 0.15)

    def __post_init__(self):
        if len(self.lane_weights) != PLAYABLE_LANES:
            raise ValueError(f"lane_weights needs {PLAYABLE_LANES} entries")
        if abs(sum(self.lane_weights) - 1.0) > 1e-6:
            raise ValueError(f"lane_weights must sum to 1, got {sum(self.lane_weights)}")
        # Same-lane long notes stay disjoint only if the global gap covers both margins.
        if self.long_min_gap < 2 * self.long_margin:
            raise ValueError("long_min_gap must be at least twice long_margin")
        if not 0 < self.long_min_beats <= self.long_max_beats:
            raise ValueError("invalid long note length range")

    @classmethod
    def from_settings(cls, config) -> "NoteRules":
        return cls(
            min_spacing=config.min_note_spacing,
            long_margin=config.long_note_margin,
            long_min_gap=config.long_note_min_gap,
            loud_ratio=config.loud_energy_ratio,
            quiet_ratio=config.quiet_energy_ratio,
            long_probability=config.long_note_probability,
            long_min_beats=config.long_note_min_beats,
            long_max_beats=config.long_note_max_beats,
            lane_weights=tuple(config.lane_weights),
        )


def _blocked_by_long(long_notes: list[Note], beat: float, margin: float) -> bool:
    return any(n.beat - margin <= beat <= n.end_beat + margin for n in long_notes)


def generate_notes(
    onsets: list[int],
    bpm: float,
    frame_size: int,
    sample_rate: int,
    offset_sec: float,
    structure: Structure,
    energies: np.ndarray,
    rng: np.random.Generator | None = None,
    rules: NoteRules | None = None,
    include_markers: bool = False,
) -> GeneratedNotes:
    """Turn candidate onset frames into easy and hard note lists.

    ``hard`` holds every accepted note in time order and ``easy`` keeps the
    even positions of ``hard``. With ``include_markers`` two marker notes on
    the reserved lane bound the playable region; they are not part of either
    tier.
    """
    rng = rng if rng is not None else np.random.default_rng()
    rules = rules or NoteRules()

    energies = np.asarray(energies, dtype=np.float64)
    mean_energy = float(np.mean(energies)) if len(energies) else 0.0
    seconds_per_beat = 60.0 / bpm
    # last whole hundredth of a beat inside the playable region
    outro_beat = math.floor(structure.outro_start / seconds_per_beat * 100) / 100
    lanes = np.arange(PLAYABLE_LANES)
    weights = np.asarray(rules.lane_weights, dtype=np.float64)

    notes: list[Note] = []
    long_by_lane: dict[int, list[Note]] = {lane: [] for lane in range(PLAYABLE_LANES)}
    last_beat = -np.inf
    last_long_end = -np.inf
    rejected = {"pre_song": 0, "structure": 0, "spacing": 0, "long_overlap": 0, "quiet": 0}

    for frame in onsets:
        time = frame * frame_size / sample_rate - offset_sec
        if time < 0:
            rejected["pre_song"] += 1
            continue

        beat = round(time / seconds_per_beat, 2)
        beat_time = beat * seconds_per_beat

        if beat_time < structure.intro_end or beat_time > structure.outro_start:
            rejected["structure"] += 1
            continue

        if beat - last_beat < rules.min_spacing:
            rejected["spacing"] += 1
            continue

        lane = int(rng.choice(lanes, p=weights))

        if _blocked_by_long(long_by_lane[lane], beat, rules.long_margin):
            rejected["long_overlap"] += 1
            continue

        if mean_energy > 0 and 0 <= frame < len(energies):
            ratio = float(energies[frame]) / mean_energy
        else:
            ratio = 0.0

        can_be_long = (
            beat - last_long_end >= rules.long_min_gap
            and ratio > rules.loud_ratio
        )

        if ratio < rules.quiet_ratio:
            rejected["quiet"] += 1
            continue

        end_beat = None
        if can_be_long and rng.random() < rules.long_probability:
            length = rng.uniform(rules.long_min_beats, rules.long_max_beats)
            end_beat = min(round(beat + length, 2), outro_beat)
            if end_beat - beat < rules.long_min_beats:
                # too close to the outro to hold for the minimum length
                end_beat = None

        if end_beat is not None:
            note = Note(lane=lane, beat=beat, type=NOTE_LONG, end_beat=end_beat)
            long_by_lane[lane].append(note)
            last_long_end = end_beat
        else:
            note = Note(lane=lane, beat=beat, type=NOTE_TAP)

        notes.append(note)
        last_beat = beat

    logger.debug(f"Accepted {len(notes)} of {len(onsets)} candidates, rejected {rejected}")

    markers: list[Note] = []
    if include_markers:
        markers = [
            Note(lane=MARKER_LANE, beat=round(structure.intro_end / seconds_per_beat, 2),
                 type=NOTE_MARKER),
            Note(lane=MARKER_LANE, beat=round(structure.outro_start / seconds_per_beat, 2),
                 type=NOTE_MARKER),
        ]

    return GeneratedNotes(easy=notes[::2], hard=notes, markers=markers)
