"""Pydantic request/response models for API."""

from pydantic import BaseModel

from beatmarker.analysis.models import AnalysisConfig, AnalysisResult, Marker
from beatmarker.config import settings
from beatmarker.timecode import format_timecode


class MarkerResponse(BaseModel):
    id: str
    time: float
    label: str
    color: str
    timecode: str

    @classmethod
    def from_marker(cls, m: Marker) -> "MarkerResponse":
        return cls(id=m.id, time=m.time, label=m.label, color=m.color, timecode=format_timecode(m.time))


class AnalysisConfigRequest(BaseModel):
    # Out-of-range values are clamped by AnalysisConfig, not rejected
    sensitivity: float = settings.default_sensitivity
    min_distance: float = settings.default_min_distance
    aggressive_mode: bool = False

    def to_config(self) -> AnalysisConfig:
        return AnalysisConfig(
            sensitivity=self.sensitivity,
            min_distance=self.min_distance,
            aggressive_mode=self.aggressive_mode,
        )


class AnalysisConfigResponse(BaseModel):
    sensitivity: float
    min_distance: float
    aggressive_mode: bool


class AnalysisResponse(BaseModel):
    markers: list[MarkerResponse]
    config: AnalysisConfigResponse
    duration: float = 0.0
    candidate_count: int = 0
    frame_rate: float = 0.0


class ManualMarkerRequest(BaseModel):
    time: float


class SessionResponse(BaseModel):
    id: str
    source_name: str
    duration: float
    sample_rate: int
    channels: int
    marker_count: int = 0
    selected_id: str | None = None
    is_analyzing: bool = False


class MarkerListResponse(BaseModel):
    markers: list[MarkerResponse]
    selected_id: str | None = None


class JumpResponse(BaseModel):
    marker_id: str
    time: float
    timecode: str


def result_to_response(result: AnalysisResult) -> AnalysisResponse:
    """Convert AnalysisResult to its API model."""
    return AnalysisResponse(
        markers=[MarkerResponse.from_marker(m) for m in result.markers],
        config=AnalysisConfigResponse(
            sensitivity=result.config.sensitivity,
            min_distance=result.config.min_distance,
            aggressive_mode=result.config.aggressive_mode,
        ),
        duration=result.duration,
        candidate_count=result.candidate_count,
        frame_rate=result.frame_rate,
    )
