"""
Shared pytest fixtures and configuration for all tests
"""
import base64
import io
import pytest
import sys
from pathlib import Path

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


@pytest.fixture
def jpeg_bytes():
    """Raw bytes standing in for photo.jpg"""
    return JPEG_BYTES


@pytest.fixture
def uploaded_image():
    """photo.jpg encoded the way an upload is"""
    from core.image_codec import encode_file
    return encode_file(io.BytesIO(JPEG_BYTES), content_type="image/jpeg", filename="photo.jpg")


@pytest.fixture
def gemini_config():
    from services.gemini_service import GeminiConfig
    return GeminiConfig(api_key="test-key", base_url="http://gemini.test/v1beta")


@pytest.fixture
def image_response():
    """Build a generateContent response with the given parts"""
    def _build(*parts):
        return {"candidates": [{"content": {"role": "model", "parts": list(parts)}}]}
    return _build


@pytest.fixture
def inline_part():
    def _build(data="Zm9v", mime_type="image/png"):
        inline = {"data": data}
        if mime_type is not None:
            inline["mimeType"] = mime_type
        return {"inlineData": inline}
    return _build


@pytest.fixture
def png_payload():
    return base64.b64encode(b"\x89PNG\r\n\x1a\nedited").decode("ascii")
