"""File upload endpoint for one-shot onset analysis."""

import asyncio
import logging
import os
import tempfile

from fastapi import APIRouter, UploadFile, File, HTTPException, Query

from beatmarker.analysis.engine import AnalysisEngine
from beatmarker.analysis.models import AnalysisConfig, AudioSampleBuffer
from beatmarker.api.schemas import AnalysisResponse, result_to_response
from beatmarker.audio.loader import load_audio
from beatmarker.config import settings
from beatmarker.errors import AudioDecodeError

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aac", ".wma"}


def _extension(filename: str | None) -> str:
    if filename and "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


async def read_upload(file: UploadFile) -> AudioSampleBuffer:
    """Validate and decode an uploaded audio file.

    Raises HTTPException 400 for unsupported formats, oversized files and
    undecodable audio.
    """
    ext = _extension(file.filename)
    if ext and ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    # Write to temp file (librosa needs a file path for some formats)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=ext, delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name
        # Decoding is CPU-bound; keep the event loop free
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, load_audio, tmp_path)
    except AudioDecodeError as e:
        logger.warning(f"Decode failed for {file.filename}: {e}")
        raise HTTPException(400, "Could not decode audio file")
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(
    file: UploadFile = File(...),
    sensitivity: float = Query(settings.default_sensitivity),
    min_distance: float = Query(settings.default_min_distance),
    aggressive_mode: bool = Query(False),
):
    """Analyze an uploaded audio file and return detected markers."""
    try:
        buffer = await read_upload(file)
        config = AnalysisConfig(
            sensitivity=sensitivity,
            min_distance=min_distance,
            aggressive_mode=aggressive_mode,
        )
        # Run analysis in thread pool to avoid blocking
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, AnalysisEngine().analyze_buffer, buffer, config)
        return result_to_response(result)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Analysis failed")
        raise HTTPException(500, "Analysis failed")
