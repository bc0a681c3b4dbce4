"""
Gemini client unit tests

The remote API is replaced by an httpx.MockTransport so request
construction and response parsing can be checked without network access.
"""
import json
import httpx
import pytest

from core.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    GenerationRequestError,
    MalformedResponseError,
    RefusalError,
)
from services.gemini_service import GeminiConfig, GeminiService


def make_service(config, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiService(config, http_client=client)


def respond_with(body, status_code=200, captured=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=body)
    return handler


@pytest.mark.unit
@pytest.mark.asyncio
class TestEditImageRequest:
    async def test_missing_key_fails_before_network(self, uploaded_image):
        captured = []
        service = make_service(GeminiConfig(api_key=None), respond_with({}, captured=captured))

        with pytest.raises(ConfigurationError):
            await service.edit_image(uploaded_image, "add fireworks")

        assert captured == []

    async def test_request_carries_image_and_prompt(self, gemini_config, uploaded_image, image_response, inline_part):
        captured = []
        service = make_service(gemini_config, respond_with(image_response(inline_part()), captured=captured))

        await service.edit_image(uploaded_image, "add fireworks")

        assert len(captured) == 1
        request = captured[0]
        assert str(request.url) == "http://gemini.test/v1beta/models/gemini-2.5-flash-image:generateContent"
        assert request.headers["x-goog-api-key"] == "test-key"

        parts = json.loads(request.content)["contents"][0]["parts"]
        assert parts[0]["inlineData"]["mimeType"] == "image/jpeg"
        assert parts[0]["inlineData"]["data"] == uploaded_image.content.split(",", 1)[1]
        assert parts[1] == {"text": "add fireworks"}


@pytest.mark.unit
@pytest.mark.asyncio
class TestEditImageResponse:
    async def test_returns_inline_image(self, gemini_config, uploaded_image, image_response, inline_part):
        service = make_service(gemini_config, respond_with(image_response(inline_part("Zm9v", "image/png"))))

        result = await service.edit_image(uploaded_image, "add fireworks")

        assert result.content_type == "image/png"
        assert result.content == "data:image/png;base64,Zm9v"

    async def test_reported_mime_type_is_kept(self, gemini_config, uploaded_image, image_response, inline_part):
        service = make_service(gemini_config, respond_with(image_response(inline_part("Zm9v", "image/webp"))))

        result = await service.edit_image(uploaded_image, "add fireworks")

        assert result.content_type == "image/webp"
        assert result.content.startswith("data:image/webp;base64,")

    async def test_missing_mime_type_defaults_to_png(self, gemini_config, uploaded_image, image_response, inline_part):
        service = make_service(gemini_config, respond_with(image_response(inline_part("Zm9v", None))))

        result = await service.edit_image(uploaded_image, "add fireworks")

        assert result.content_type == "image/png"

    async def test_image_after_text_wins(self, gemini_config, uploaded_image, image_response, inline_part):
        body = image_response({"text": "Here is your image"}, inline_part("Zm9v"))
        service = make_service(gemini_config, respond_with(body))

        result = await service.edit_image(uploaded_image, "add fireworks")

        assert result.content == "data:image/png;base64,Zm9v"

    async def test_first_image_wins(self, gemini_config, uploaded_image, image_response, inline_part):
        body = image_response(inline_part("Zmlyc3Q=", "image/png"), inline_part("c2Vjb25k", "image/jpeg"))
        service = make_service(gemini_config, respond_with(body))

        result = await service.edit_image(uploaded_image, "add fireworks")

        assert result.content == "data:image/png;base64,Zmlyc3Q="

    async def test_snake_case_inline_data_is_accepted(self, gemini_config, uploaded_image, image_response):
        body = image_response({"inline_data": {"data": "Zm9v", "mime_type": "image/jpeg"}})
        service = make_service(gemini_config, respond_with(body))

        result = await service.edit_image(uploaded_image, "add fireworks")

        assert result.content_type == "image/jpeg"

    async def test_zero_candidates(self, gemini_config, uploaded_image):
        service = make_service(gemini_config, respond_with({"candidates": []}))

        with pytest.raises(EmptyResponseError):
            await service.edit_image(uploaded_image, "add fireworks")

    async def test_no_candidates_key(self, gemini_config, uploaded_image):
        service = make_service(gemini_config, respond_with({}))

        with pytest.raises(EmptyResponseError):
            await service.edit_image(uploaded_image, "add fireworks")

    async def test_candidate_without_parts(self, gemini_config, uploaded_image):
        service = make_service(gemini_config, respond_with({"candidates": [{"finishReason": "SAFETY"}]}))

        with pytest.raises(MalformedResponseError):
            await service.edit_image(uploaded_image, "add fireworks")

    async def test_text_only_is_refusal(self, gemini_config, uploaded_image, image_response):
        body = image_response({"text": "blocked by safety filters"})
        service = make_service(gemini_config, respond_with(body))

        with pytest.raises(RefusalError) as exc_info:
            await service.edit_image(uploaded_image, "add fireworks")

        assert exc_info.value.text == "blocked by safety filters"
        assert str(exc_info.value) == "Gemini API response: blocked by safety filters"

    async def test_parts_without_image_or_text(self, gemini_config, uploaded_image, image_response):
        body = image_response({"thought": True}, {"text": ""})
        service = make_service(gemini_config, respond_with(body))

        with pytest.raises(EmptyResponseError):
            await service.edit_image(uploaded_image, "add fireworks")


@pytest.mark.unit
@pytest.mark.asyncio
class TestEditImageTransportErrors:
    async def test_http_error_uses_api_message(self, gemini_config, uploaded_image):
        body = {"error": {"code": 400, "message": "API key not valid."}}
        service = make_service(gemini_config, respond_with(body, status_code=400))

        with pytest.raises(GenerationRequestError) as exc_info:
            await service.edit_image(uploaded_image, "add fireworks")

        assert str(exc_info.value) == "API key not valid."
        assert exc_info.value.status_code == 400

    async def test_http_error_without_body(self, gemini_config, uploaded_image):
        def handler(request):
            return httpx.Response(503)
        service = make_service(gemini_config, handler)

        with pytest.raises(GenerationRequestError) as exc_info:
            await service.edit_image(uploaded_image, "add fireworks")

        assert str(exc_info.value) == "API request failed: 503"

    async def test_timeout(self, gemini_config, uploaded_image):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)
        service = make_service(gemini_config, handler)

        with pytest.raises(GenerationRequestError) as exc_info:
            await service.edit_image(uploaded_image, "add fireworks")

        assert "timeout" in str(exc_info.value).lower()

    async def test_connection_error(self, gemini_config, uploaded_image):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        service = make_service(gemini_config, handler)

        with pytest.raises(GenerationRequestError) as exc_info:
            await service.edit_image(uploaded_image, "add fireworks")

        assert "Error calling Gemini API" in str(exc_info.value)


@pytest.mark.unit
def test_config_from_settings():
    from config.settings import Settings

    settings = Settings(GEMINI_API_KEY="abc", GEMINI_MODEL_NAME="gemini-test", _env_file=None)
    config = GeminiConfig.from_settings(settings)

    assert config.api_key == "abc"
    assert config.model_name == "gemini-test"
    assert GeminiService(config).is_configured() is True
