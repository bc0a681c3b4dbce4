from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Optional, List, Literal, Union
from enum import Enum


class EditStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class EncodedImage(BaseModel):
    """Base64 data URI plus its content type. Never mutated in place."""
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Data URI, e.g. data:image/png;base64,...")
    content_type: str = Field("image/png", description="MIME type of the payload")


class IdleState(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[EditStatus.IDLE] = EditStatus.IDLE


class ProcessingState(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[EditStatus.PROCESSING] = EditStatus.PROCESSING


class SuccessState(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[EditStatus.SUCCESS] = EditStatus.SUCCESS


class ErrorState(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[EditStatus.ERROR] = EditStatus.ERROR
    message: str


EditorState = Annotated[
    Union[IdleState, ProcessingState, SuccessState, ErrorState],
    Field(discriminator="status"),
]


# API payloads

class SessionView(BaseModel):
    session_id: str
    state: EditorState
    original: EncodedImage
    current: EncodedImage
    displayed: EncodedImage
    pending_prompt: str = ""
    edit_version: int = 0
    is_edited: bool = False
    show_comparison: bool = False
    can_generate: bool = False
    can_reset: bool = False


class SessionResponse(BaseModel):
    success: bool
    session: Optional[SessionView] = None
    error: Optional[str] = None


class PromptUpdate(BaseModel):
    prompt: str


class GenerateRequest(BaseModel):
    prompt: Optional[str] = None


class ComparisonUpdate(BaseModel):
    show: bool


class SuggestionsResponse(BaseModel):
    suggestions: List[str] = []


class ConfigStatusResponse(BaseModel):
    configured: bool
    model: str
    message: str
