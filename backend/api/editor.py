import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from config.settings import get_settings
from core.cache import SessionCache
from core.exceptions import ReadError, SessionNotFoundError
from core.image_codec import encode_file
from models.editor import (
    ComparisonUpdate,
    ConfigStatusResponse,
    GenerateRequest,
    PromptUpdate,
    SessionResponse,
    SuggestionsResponse,
)
from services.editor_session_service import (
    SUGGESTED_PROMPTS,
    EditorSession,
    EditorSessionService,
)
from services.gemini_service import GeminiConfig, GeminiService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/editor", tags=["editor"])


def get_gemini_service() -> GeminiService:
    return GeminiService(GeminiConfig.from_settings(get_settings()))


@lru_cache()
def get_editor_session_service() -> EditorSessionService:
    settings = get_settings()
    return EditorSessionService(
        get_gemini_service(),
        cache=SessionCache(maxsize=settings.SESSION_MAX_COUNT, ttl=settings.SESSION_TTL_SECONDS),
        download_prefix=settings.DOWNLOAD_FILENAME_PREFIX,
    )


def format_size(size: int) -> str:
    """Human-readable byte count for upload limit messages"""
    if size >= 1024 * 1024:
        return f"{round(size / (1024 * 1024), 1):g}MB"
    if size >= 1024:
        return f"{round(size / 1024, 1):g}KB"
    return f"{size} bytes"


def _get_session(session_id: str, service: EditorSessionService) -> EditorSession:
    try:
        return service.get_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _session_response(session: EditorSession) -> SessionResponse:
    return SessionResponse(
        success=session.last_error is None,
        session=session.to_view(),
        error=session.last_error,
    )


@router.get("/suggestions", response_model=SuggestionsResponse)
async def get_suggestions():
    """Canned edit instructions for quick actions"""
    return SuggestionsResponse(suggestions=SUGGESTED_PROMPTS)


@router.get("/health", response_model=ConfigStatusResponse)
async def check_gemini_config():
    """Check if Gemini is properly configured"""
    gemini_service = get_gemini_service()
    has_key = gemini_service.is_configured()

    return ConfigStatusResponse(
        configured=has_key,
        model=gemini_service.config.model_name,
        message="Gemini API key configured" if has_key else "Gemini API key not set"
    )


@router.post("/sessions", response_model=SessionResponse)
async def create_session(
    file: UploadFile = File(...),
    service: EditorSessionService = Depends(get_editor_session_service),
):
    """Start an editing session from an uploaded image"""
    if not (file.content_type or "").startswith("image/"):
        return SessionResponse(success=False, error="Please upload a valid image file.")

    max_size = get_settings().MAX_UPLOAD_SIZE
    if file.size is not None and file.size > max_size:
        return SessionResponse(
            success=False,
            error=f"File is too large. Maximum size is {format_size(max_size)}."
        )

    try:
        image = encode_file(file.file, content_type=file.content_type, filename=file.filename)
    except ReadError as e:
        logger.error(f"❌ Error reading file {file.filename}: {e}")
        return SessionResponse(success=False, error="Failed to read file.")

    session = service.create_session(image)
    return SessionResponse(success=True, session=session.to_view())


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    return _session_response(_get_session(session_id, service))


@router.delete("/sessions/{session_id}")
async def discard_session(
    session_id: str,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    """Discard the session and go back to the upload step"""
    try:
        service.discard_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Session discarded"}


@router.put("/sessions/{session_id}/prompt", response_model=SessionResponse)
async def update_prompt(
    session_id: str,
    payload: PromptUpdate,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    session = _get_session(session_id, service)
    session.set_prompt(payload.prompt)
    return _session_response(session)


@router.post("/sessions/{session_id}/suggestions/{index}", response_model=SessionResponse)
async def apply_suggestion(
    session_id: str,
    index: int,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    session = _get_session(session_id, service)
    try:
        session.apply_suggestion(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_response(session)


@router.post("/sessions/{session_id}/generate", response_model=SessionResponse)
async def generate_edit(
    session_id: str,
    payload: Optional[GenerateRequest] = None,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    """Apply the pending prompt to the current image with Gemini"""
    session = _get_session(session_id, service)
    issued = await session.generate(payload.prompt if payload else None)

    if session.discarded:
        return SessionResponse(success=False, error="Session was discarded")

    if not issued:
        return SessionResponse(
            success=False,
            session=session.to_view(),
            error="Enter a prompt, or wait for the current edit to finish."
        )

    return _session_response(session)


@router.post("/sessions/{session_id}/dismiss-error", response_model=SessionResponse)
async def dismiss_error(
    session_id: str,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    session = _get_session(session_id, service)
    session.dismiss_error()
    return _session_response(session)


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset_session(
    session_id: str,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    """Undo all edits and restore the uploaded image"""
    session = _get_session(session_id, service)
    if not session.reset():
        return SessionResponse(
            success=False,
            session=session.to_view(),
            error="Nothing to reset, or an edit is still in progress."
        )
    return _session_response(session)


@router.put("/sessions/{session_id}/comparison", response_model=SessionResponse)
async def set_comparison(
    session_id: str,
    payload: ComparisonUpdate,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    session = _get_session(session_id, service)
    session.set_comparison(payload.show)
    return _session_response(session)


@router.get("/sessions/{session_id}/download")
async def download_image(
    session_id: str,
    service: EditorSessionService = Depends(get_editor_session_service),
):
    session = _get_session(session_id, service)
    try:
        filename, data, content_type = session.download()
    except ReadError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=data,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
