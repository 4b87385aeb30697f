"""Chart generation endpoints."""

import logging

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from beatchart.analysis.engine import ChartEngine
from beatchart.api.schemas import ChartResponse, ChartUrlRequest, chart_to_response
from beatchart.audio.loader import AudioAcquisitionError, AudioDecodeError, AudioSource, is_url
from beatchart.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aac", ".wma"}


def _run_engine(source: AudioSource, title: str | None, include_markers: bool) -> ChartResponse:
    try:
        engine = ChartEngine()
        chart = engine.analyze_source(source, title=title, include_markers=include_markers)
    except AudioAcquisitionError as e:
        raise HTTPException(400, f"Could not read audio: {e}")
    except AudioDecodeError as e:
        raise HTTPException(422, f"Unsupported or corrupt audio: {e}")
    except Exception:
        logger.exception("Chart generation failed")
        raise HTTPException(500, "Chart generation failed")
    return chart_to_response(chart)


@router.post("/chart", response_model=ChartResponse, response_model_exclude_none=True)
def chart_from_upload(
    file: UploadFile = File(...),
    markers: bool = Query(False),
):
    """Generate a chart from an uploaded audio file."""
    title = None
    if file.filename:
        ext = "." + file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
        if ext and ext not in ALLOWED_EXTENSIONS:
            raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(ALLOWED_EXTENSIONS))}")
        title = file.filename.rsplit(".", 1)[0] if "." in file.filename else file.filename

    content = file.file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")
    if not content:
        raise HTTPException(400, "Empty file")

    return _run_engine(content, title, markers)


@router.post("/chart/url", response_model=ChartResponse, response_model_exclude_none=True)
def chart_from_url(request: ChartUrlRequest):
    """Fetch audio from a URL and generate a chart."""
    if not is_url(request.url):
        raise HTTPException(400, "Only http(s) URLs are supported")
    return _run_engine(request.url, request.title, request.include_markers)
