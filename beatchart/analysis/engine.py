"""Chart orchestrator - runs the analysis pipeline end to end."""

import logging
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote, urlparse

import numpy as np

from beatchart.analysis.beat_grid import generate_beat_grid, merge_onsets
from beatchart.analysis.energy import compute_energy
from beatchart.analysis.models import Chart, PcmBuffer
from beatchart.analysis.notes import NoteRules, generate_notes
from beatchart.analysis.offset import estimate_offset
from beatchart.analysis.onset import detect_onsets
from beatchart.analysis.structure import analyze_structure
from beatchart.analysis.tempo import estimate_bpm
from beatchart.audio.loader import AudioContext, AudioSource, is_url, load_audio
from beatchart.audio.preprocessing import drum_band_mix
from beatchart.config import Settings, settings

logger = logging.getLogger(__name__)


def title_from_source(source: AudioSource) -> str:
    """Best-effort title: file stem or last URL path segment."""
    if isinstance(source, (bytes, BytesIO)):
        return "untitled"
    if is_url(source):
        path = unquote(urlparse(source).path)
        return Path(path).stem or "untitled"
    return Path(source).stem or "untitled"


class ChartEngine:
    """Orchestrates acquisition, analysis and note generation.

    Each call produces an independent chart. The audio context is created
    on first use and reused by later runs.
    """

    def __init__(self, config: Settings | None = None, rng: np.random.Generator | None = None):
        self.config = config or settings
        self.rng = rng if rng is not None else np.random.default_rng()
        self._context: AudioContext | None = None

    @property
    def context(self) -> AudioContext:
        if self._context is None:
            self._context = AudioContext(sample_rate=self.config.sample_rate)
        return self._context

    def analyze_source(
        self,
        source: AudioSource,
        title: str | None = None,
        include_markers: bool = False,
    ) -> Chart:
        """Fetch, decode and chart an audio source.

        Acquisition and decode errors propagate and abort the run.
        """
        buffer = load_audio(source, self.context, timeout=self.config.fetch_timeout)
        return self.analyze_buffer(
            buffer,
            title=title or title_from_source(source),
            include_markers=include_markers,
        )

    def analyze_buffer(
        self,
        buffer: PcmBuffer,
        title: str = "untitled",
        include_markers: bool = False,
    ) -> Chart:
        """Chart an already decoded buffer."""
        cfg = self.config
        sr = buffer.sample_rate
        frame_size = cfg.frame_size
        logger.info(f"Charting '{title}': {buffer.duration:.1f}s of audio at {sr}Hz")

        # Step 1: Energy
        logger.info("Step 1: Frame energy")
        source = buffer
        if cfg.use_drum_bands:
            source = drum_band_mix(
                buffer,
                kick_high_hz=cfg.kick_high_hz,
                snare_low_hz=cfg.snare_low_hz,
                snare_high_hz=cfg.snare_high_hz,
            )
            logger.info("  Using kick + snare band energy")
        frames = compute_energy(source, frame_size)
        logger.info(f"  {len(frames)} frames of {frame_size} samples")

        # Step 2: Onsets
        logger.info("Step 2: Onset detection")
        onsets = detect_onsets(frames.energies, cfg.onset_threshold_factor)
        logger.info(f"  {len(onsets)} onsets")

        # Step 3: Tempo
        logger.info("Step 3: Tempo estimation")
        bpm = estimate_bpm(
            onsets, frame_size, sr,
            tolerance=cfg.interval_tolerance,
            min_bpm=cfg.min_bpm,
            max_bpm=cfg.max_bpm,
        )
        logger.info(f"  Tempo: {bpm} BPM")

        # Step 4: Structure
        logger.info("Step 4: Structure")
        structure = analyze_structure(
            frames.energies,
            frames.times,
            duration=buffer.duration,
            quiet_ratio=cfg.quiet_section_ratio,
            intro_end_ratio=cfg.intro_end_ratio,
            quiet_intro_end_ratio=cfg.quiet_intro_end_ratio,
            outro_start_ratio=cfg.outro_start_ratio,
            quiet_outro_start_ratio=cfg.quiet_outro_start_ratio,
        )
        logger.info(f"  Intro ends {structure.intro_end:.2f}s, "
                    f"outro starts {structure.outro_start:.2f}s")

        # Step 5: Offset
        logger.info("Step 5: Offset estimation")
        # rounded once so the notes and the reported offset agree
        offset = round(estimate_offset(
            onsets, bpm, frame_size, sr,
            window_sec=cfg.offset_window_sec,
            min_inliers=cfg.min_offset_inliers,
        ), 4)
        logger.info(f"  Offset: {offset:+.3f}s")

        # Step 6: Candidate beats
        candidates = onsets
        synthetic = False
        if len(onsets) < cfg.sparse_onset_threshold:
            grid = generate_beat_grid(bpm, structure.total_duration, frame_size, sr, offset_sec=offset)
            candidates = merge_onsets(onsets, grid)
            synthetic = True
            logger.info(f"Step 6: Sparse onsets, merged {len(grid)} grid beats")

        # Step 7: Notes
        logger.info("Step 7: Note generation")
        notes = generate_notes(
            candidates,
            bpm=bpm,
            frame_size=frame_size,
            sample_rate=sr,
            offset_sec=offset,
            structure=structure,
            energies=frames.energies,
            rng=self.rng,
            rules=NoteRules.from_settings(cfg),
            include_markers=include_markers,
        )
        n_long = sum(1 for n in notes.hard if n.is_long)
        logger.info(f"  {len(notes.hard)} hard notes ({n_long} long), {len(notes.easy)} easy notes")

        return Chart(
            title=title,
            bpm=bpm,
            offset_sec=offset,
            structure=structure,
            easy=notes.easy,
            hard=notes.hard,
            markers=notes.markers,
            onset_count=len(onsets),
            synthetic_beats=synthetic,
        )
