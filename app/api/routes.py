import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.schemas import ErrorResponse, GetVideoRequest
from app.core.services.video_extraction import ExtractionResult, QueueStatus, VideoExtractionService

logger = structlog.get_logger(__name__)

MISSING_VIDEO_URL = 'Missing videoUrl in request body'

router = APIRouter()


def get_extraction_service(request: Request) -> VideoExtractionService:
    return request.app.state.extraction_service


@router.post(
    '/getvideo',
    response_model=ExtractionResult,
    responses={400: {'model': ErrorResponse}, 500: {'model': ErrorResponse}},
)
async def get_video(
    payload: GetVideoRequest,
    service: VideoExtractionService = Depends(get_extraction_service),
):
    """Resolve the direct video URL behind a page."""
    if not payload.video_url:
        return JSONResponse(status_code=400, content={'error': MISSING_VIDEO_URL})

    try:
        return await service.extract(payload.video_url)
    except Exception as e:
        logger.error('Extraction error', url=payload.video_url, error=str(e))
        return JSONResponse(status_code=500, content={'error': str(e)})


@router.get('/status', response_model=QueueStatus)
async def get_status(service: VideoExtractionService = Depends(get_extraction_service)):
    """Current queue depth and the request being processed."""
    return service.status()
