"""
Error taxonomy for the editor backend.

Every failure raised by the codec, the Gemini client or the session
registry derives from EditorError so the API layer can map it to a
user-facing message.
"""

from typing import Optional


class EditorError(Exception):
    """Base class for all editor errors."""


class ConfigurationError(EditorError):
    """The Gemini credential is not configured."""


class EmptyResponseError(EditorError):
    """The generation exchange produced nothing usable."""


class MalformedResponseError(EditorError):
    """The first candidate has no content parts."""


class RefusalError(EditorError):
    """The model answered with text instead of an image."""

    MESSAGE_TEMPLATE = "Gemini API response: {text}"

    def __init__(self, text: str):
        self.text = text
        super().__init__(self.MESSAGE_TEMPLATE.format(text=text))


class ReadError(EditorError):
    """An uploaded file could not be read or decoded."""


class GenerationRequestError(EditorError):
    """The HTTP exchange with Gemini failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class SessionNotFoundError(EditorError):
    """No live session exists for the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
