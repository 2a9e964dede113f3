"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Preprocessing
    analysis_sample_rate: int = 11025  # lower bound after decimation

    # Onset strength framing (seconds, halved in aggressive mode)
    frame_seconds: float = 0.08
    hop_seconds: float = 0.02

    # Adaptive threshold
    threshold_scale_max: float = 4.0  # at sensitivity 0.0
    threshold_scale_min: float = 1.0  # at sensitivity 1.0
    aggressive_scale_factor: float = 0.6
    threshold_window_seconds: float = 0.5  # half-width of the moving average
    aggressive_window_seconds: float = 0.75
    threshold_floor: float = 1e-6

    # Defaults for a run
    default_sensitivity: float = 0.7
    default_min_distance: float = 0.25
    min_distance_floor: float = 0.01

    # Display / export
    display_fps: int = 30
    export_timebase: int = 60

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50
    analysis_workers: int = 2
    max_sessions: int = 16  # oldest idle session is evicted beyond this

    model_config = {"env_prefix": "BEATMARKER_"}


settings = Settings()
