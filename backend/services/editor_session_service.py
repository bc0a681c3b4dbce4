import asyncio
import logging
import time
import uuid
import mimetypes
from typing import Optional, Tuple

from core.cache import SessionCache
from core.exceptions import (
    EmptyResponseError,
    MalformedResponseError,
    SessionNotFoundError,
)
from core.image_codec import decode_image
from models.editor import (
    EditorState,
    EditStatus,
    EncodedImage,
    ErrorState,
    IdleState,
    ProcessingState,
    SessionView,
    SuccessState,
)
from services.gemini_service import GeminiService

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to generate image"

SUGGESTED_PROMPTS = [
    "Add a cyberpunk neon filter",
    "Turn into a pencil sketch",
    "Remove the background",
    "Make it look like a vintage 1980s photo",
    "Add fireworks in the sky",
    "Convert to an oil painting"
]


def error_message_for(error: Exception) -> str:
    """Human-readable message for a failed generate attempt"""
    if isinstance(error, (EmptyResponseError, MalformedResponseError)):
        return str(error) or "No image generated."
    return str(error) or GENERIC_FAILURE_MESSAGE


class EditorSession:
    """
    One upload-to-discard editing session.

    Tracks the original and current images, the pending prompt and the
    edit status. At most one generate call is in flight at a time; the
    Processing status is the only guard.
    """

    def __init__(
        self,
        original: EncodedImage,
        gemini_service: GeminiService,
        session_id: Optional[str] = None,
        download_prefix: str = "visionai-edit",
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.original = original
        self.current = original
        self.pending_prompt = ""
        self.state: EditorState = IdleState()
        self.edit_version = 0
        self.show_comparison = False
        self.discarded = False
        self.gemini_service = gemini_service
        self.download_prefix = download_prefix

    @property
    def status(self) -> EditStatus:
        return self.state.status

    @property
    def last_error(self) -> Optional[str]:
        return self.state.message if isinstance(self.state, ErrorState) else None

    @property
    def is_edited(self) -> bool:
        return self.edit_version > 0

    @property
    def can_generate(self) -> bool:
        return (
            not self.discarded
            and bool(self.pending_prompt.strip())
            and self.status != EditStatus.PROCESSING
        )

    @property
    def can_reset(self) -> bool:
        return not self.discarded and self.is_edited and self.status != EditStatus.PROCESSING

    @property
    def displayed_image(self) -> EncodedImage:
        if self.show_comparison and self.is_edited:
            return self.original
        return self.current

    def set_prompt(self, prompt: str) -> None:
        self.pending_prompt = prompt

    def apply_suggestion(self, index: int) -> str:
        """Copy one of the suggested prompts into the prompt field"""
        if index < 0 or index >= len(SUGGESTED_PROMPTS):
            raise IndexError(f"No suggested prompt at index {index}")
        self.pending_prompt = SUGGESTED_PROMPTS[index]
        return self.pending_prompt

    async def generate(self, prompt: Optional[str] = None) -> bool:
        """
        Run one edit against the current image.

        Args:
            prompt: Replaces the pending prompt when given

        Returns:
            True if an edit request was issued, False if the guard refused it
        """
        if prompt is not None:
            self.pending_prompt = prompt

        if not self.can_generate:
            return False

        self.state = ProcessingState()
        request_prompt = self.pending_prompt
        source = self.current
        logger.info(f"🔄 Session {self.session_id}: generating edit")

        try:
            result = await self.gemini_service.edit_image(source, request_prompt)
        except asyncio.CancelledError:
            if not self.discarded:
                logger.info(f"⏹️ Session {self.session_id}: edit cancelled")
                self.state = IdleState()
            raise
        except Exception as error:
            if self.discarded:
                logger.info(f"🗑️ Session {self.session_id} was discarded, dropping failed result")
                return True
            logger.warning(f"⚠️ Session {self.session_id}: edit failed: {error}")
            self.state = ErrorState(message=error_message_for(error))
            return True

        if self.discarded:
            logger.info(f"🗑️ Session {self.session_id} was discarded, dropping edit result")
            return True

        self.current = result
        self.edit_version += 1
        self.pending_prompt = ""
        self.state = SuccessState()
        logger.info(f"✅ Session {self.session_id}: edit {self.edit_version} applied")
        return True

    def dismiss_error(self) -> bool:
        if self.status != EditStatus.ERROR:
            return False
        self.state = IdleState()
        return True

    def reset(self) -> bool:
        """Restore the original image. Refused while a request is in flight."""
        if not self.can_reset:
            return False
        self.current = self.original
        self.edit_version = 0
        self.state = IdleState()
        return True

    def set_comparison(self, show: bool) -> None:
        self.show_comparison = show

    def discard(self) -> None:
        self.discarded = True

    def download(self, now: Optional[float] = None) -> Tuple[str, bytes, str]:
        """
        Export the current image.

        Returns:
            (filename, image bytes, content type)
        """
        timestamp = int((now if now is not None else time.time()) * 1000)
        extension = mimetypes.guess_extension(self.current.content_type) or ".png"
        filename = f"{self.download_prefix}-{timestamp}{extension}"
        return filename, decode_image(self.current), self.current.content_type

    def to_view(self) -> SessionView:
        return SessionView(
            session_id=self.session_id,
            state=self.state,
            original=self.original,
            current=self.current,
            displayed=self.displayed_image,
            pending_prompt=self.pending_prompt,
            edit_version=self.edit_version,
            is_edited=self.is_edited,
            show_comparison=self.show_comparison,
            can_generate=self.can_generate,
            can_reset=self.can_reset,
        )


class EditorSessionService:
    """Creates, looks up and discards editor sessions."""

    def __init__(
        self,
        gemini_service: GeminiService,
        cache: Optional[SessionCache] = None,
        download_prefix: str = "visionai-edit",
    ):
        self.gemini_service = gemini_service
        self.cache = cache or SessionCache()
        self.download_prefix = download_prefix

    def create_session(self, image: EncodedImage) -> EditorSession:
        session = EditorSession(
            image,
            self.gemini_service,
            download_prefix=self.download_prefix,
        )
        self.cache.set(session.session_id, session)
        logger.info(f"🆕 Created editor session {session.session_id} ({image.content_type})")
        return session

    def get_session(self, session_id: str) -> EditorSession:
        session = self.cache.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def discard_session(self, session_id: str) -> None:
        """Drop a session; an in-flight edit for it will be ignored when it lands"""
        session = self.cache.pop(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.discard()
        logger.info(f"🗑️ Discarded editor session {session_id}")
