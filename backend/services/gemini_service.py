import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from config.settings import Settings
from core.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    GenerationRequestError,
    MalformedResponseError,
    RefusalError,
)
from core.image_codec import DEFAULT_CONTENT_TYPE, build_data_uri, strip_encoding_marker
from models.editor import EncodedImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeminiConfig:
    """Everything the Gemini client needs, passed in explicitly."""
    api_key: Optional[str]
    model_name: str = "gemini-2.5-flash-image"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = 120.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiConfig":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL_NAME,
            base_url=settings.GEMINI_BASE_URL,
            timeout=settings.GEMINI_REQUEST_TIMEOUT,
        )


def _inline_data(part: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    # REST responses use camelCase, some proxies return snake_case
    return part.get("inlineData") or part.get("inline_data")


class GeminiService:
    def __init__(self, config: GeminiConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.http_client = http_client

    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model_name}:generateContent"

    def build_payload(self, image: EncodedImage, prompt: str) -> Dict[str, Any]:
        """Image goes as inline data, the instruction as a text part"""
        return {
            "contents": [{
                "parts": [
                    {
                        "inlineData": {
                            "data": strip_encoding_marker(image.content),
                            "mimeType": image.content_type,
                        }
                    },
                    {
                        "text": prompt
                    }
                ]
            }]
        }

    async def edit_image(self, image: EncodedImage, prompt: str) -> EncodedImage:
        """
        Edit an image with the Gemini image model.

        Args:
            image: Current image
            prompt: Natural-language edit instruction

        Returns:
            A new EncodedImage built from the first inline image part

        Raises:
            ConfigurationError: no API key configured
            GenerationRequestError: transport or HTTP failure
            EmptyResponseError: no candidates, or neither image nor text
            MalformedResponseError: first candidate has no parts
            RefusalError: the model only answered with text
        """
        if not self.is_configured():
            raise ConfigurationError("API Key is missing. Please configure the environment.")

        payload = self.build_payload(image, prompt)
        logger.info(f"🎨 Sending edit request to {self.config.model_name} ({image.content_type}, prompt={prompt[:50]!r})")

        try:
            data = await self._post(payload)
            return self.parse_response(data)
        except Exception as error:
            logger.error(f"❌ Gemini API Error: {error}")
            raise

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "x-goog-api-key": self.config.api_key,
            "Content-Type": "application/json"
        }

        try:
            if self.http_client is not None:
                response = await self.http_client.post(self.endpoint, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise GenerationRequestError("Request timeout - Gemini API may be slow") from e
        except httpx.HTTPError as e:
            raise GenerationRequestError(f"Error calling Gemini API: {str(e)}") from e

        if response.status_code != 200:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            error_info = error_data.get('error') if isinstance(error_data, dict) else None
            error_message = error_info.get('message') if isinstance(error_info, dict) else None
            raise GenerationRequestError(
                error_message or f"API request failed: {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError("Gemini returned a non-JSON response.") from e

    def parse_response(self, data: Dict[str, Any]) -> EncodedImage:
        """Pick the generated image out of a generateContent response"""
        candidates: List[Dict[str, Any]] = data.get("candidates") or []
        if not candidates:
            raise EmptyResponseError("No candidates returned from Gemini.")

        content = candidates[0].get("content") or {}
        parts = content.get("parts")
        if not parts:
            raise MalformedResponseError("No content parts returned.")

        # The image is not necessarily the first part; the first one wins
        for part in parts:
            inline = _inline_data(part)
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_CONTENT_TYPE
                logger.info(f"✅ Received edited image ({mime_type})")
                return EncodedImage(
                    content=build_data_uri(inline["data"], mime_type),
                    content_type=mime_type,
                )

        # Safety refusals and clarification requests come back as text
        text_part = next((part for part in parts if part.get("text")), None)
        if text_part:
            raise RefusalError(text_part["text"])

        raise EmptyResponseError("No image generated.")
