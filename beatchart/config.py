"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio
    sample_rate: int | None = None  # None keeps the file's native rate
    fetch_timeout: float = 30.0

    # Energy / onsets
    frame_size: int = 512
    onset_threshold_factor: float = 1.1

    # Drum-band onset energy (kick low-pass + snare band-pass)
    use_drum_bands: bool = False
    kick_high_hz: float = 150.0
    snare_low_hz: float = 150.0
    snare_high_hz: float = 800.0

    # Tempo
    interval_tolerance: int = 2
    min_bpm: float = 80.0
    max_bpm: float = 180.0

    # Offset
    offset_window_sec: float = 0.15
    min_offset_inliers: int = 5

    # Structure
    quiet_section_ratio: float = 0.7
    intro_end_ratio: float = 0.05
    quiet_intro_end_ratio: float = 0.12
    outro_start_ratio: float = 0.90
    quiet_outro_start_ratio: float = 0.85

    # Beat grid fallback
    sparse_onset_threshold: int = 8

    # Note placement
    min_note_spacing: float = 0.25  # beats
    long_note_margin: float = 0.2  # beats
    long_note_min_gap: float = 0.5  # beats
    loud_energy_ratio: float = 0.75
    quiet_energy_ratio: float = 0.15
    long_note_probability: float = 0.20
    long_note_min_beats: float = 1.0
    long_note_max_beats: float = 3.0
    lane_weights: tuple[float, float, float, float] = (0.15, 0.35, 0.35, 0.15)

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50

    model_config = {"env_prefix": "BEATCHART_"}


settings = Settings()
