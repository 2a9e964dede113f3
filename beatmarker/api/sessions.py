"""Session endpoints: analyze, edit markers, select and export."""

import asyncio
import logging
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Query, Response, UploadFile

from beatmarker.api.schemas import (
    AnalysisConfigRequest,
    AnalysisResponse,
    JumpResponse,
    ManualMarkerRequest,
    MarkerListResponse,
    MarkerResponse,
    SessionResponse,
    result_to_response,
)
from beatmarker.api.upload import read_upload
from beatmarker.errors import ConcurrentRunRejectedError
from beatmarker.export import ExportFormat, export_markers
from beatmarker.session import AnalysisSession, SessionRegistry
from beatmarker.timecode import format_timecode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions")

registry = SessionRegistry()


def _get_session(session_id: str) -> AnalysisSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


def _session_response(session: AnalysisSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        source_name=session.source_name,
        duration=session.duration,
        sample_rate=session.buffer.sample_rate,
        channels=session.buffer.n_channels,
        marker_count=len(session.timeline),
        selected_id=session.timeline.selected_id,
        is_analyzing=session.is_busy,
    )


def _content_disposition(filename: str) -> str:
    """Attachment header safe for any filename.

    Header values are latin-1 on the wire, so non-ASCII names go in the
    RFC 5987 ``filename*`` parameter with an ASCII ``filename`` fallback.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    fallback = fallback.replace('"', "").replace("\\", "")
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def _marker_list(session: AnalysisSession) -> MarkerListResponse:
    return MarkerListResponse(
        markers=[MarkerResponse.from_marker(m) for m in session.timeline.markers],
        selected_id=session.timeline.selected_id,
    )


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(file: UploadFile = File(...)):
    """Upload an audio file and open a marker session for it."""
    buffer = await read_upload(file)
    session = registry.create(buffer, source_name=file.filename or "audio")
    return _session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _session_response(_get_session(session_id))


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str):
    if not registry.remove(session_id):
        raise HTTPException(404, "Session not found")
    return Response(status_code=204)


@router.post("/{session_id}/analyze", response_model=AnalysisResponse)
async def analyze_session(session_id: str, request: AnalysisConfigRequest | None = None):
    """Detect onsets and replace the session's markers with them."""
    session = _get_session(session_id)
    config = (request or AnalysisConfigRequest()).to_config()
    try:
        future = session.submit(config)
    except ConcurrentRunRejectedError as e:
        raise HTTPException(409, str(e))
    try:
        result = await asyncio.wrap_future(future)
    except Exception:
        raise HTTPException(500, "Analysis failed")
    return result_to_response(result)


@router.get("/{session_id}/markers", response_model=MarkerListResponse)
async def list_markers(session_id: str):
    return _marker_list(_get_session(session_id))


@router.post("/{session_id}/markers", response_model=MarkerResponse, status_code=201)
async def add_marker(session_id: str, request: ManualMarkerRequest):
    """Add a manual marker; the time is clamped to the audio duration."""
    session = _get_session(session_id)
    marker = session.add_manual_marker(request.time)
    return MarkerResponse.from_marker(marker)


@router.delete("/{session_id}/markers", status_code=204)
async def clear_markers(session_id: str):
    _get_session(session_id).timeline.clear()
    return Response(status_code=204)


@router.delete("/{session_id}/markers/{marker_id}", status_code=204)
async def delete_marker(session_id: str, marker_id: str):
    """Delete a marker. Unknown ids are a no-op."""
    _get_session(session_id).timeline.remove(marker_id)
    return Response(status_code=204)


@router.post("/{session_id}/markers/{marker_id}/select", response_model=JumpResponse)
async def select_marker(session_id: str, marker_id: str):
    """Select a marker and report where playback should jump."""
    session = _get_session(session_id)
    t = session.timeline.jump_to(marker_id)
    if t is None:
        raise HTTPException(404, "Marker not found")
    return JumpResponse(marker_id=marker_id, time=t, timecode=format_timecode(t))


@router.get("/{session_id}/export")
async def export_session(session_id: str, format: ExportFormat = Query(ExportFormat.PREMIERE_XML)):
    """Download the session's markers in an editor exchange format."""
    session = _get_session(session_id)
    artifact = export_markers(
        session.timeline.markers, format, source_name=session.source_name, duration=session.duration,
    )
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": _content_disposition(artifact.filename)},
    )
