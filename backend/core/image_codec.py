"""
Data URI helpers for uploaded and generated images.

Images travel through the editor as self-describing base64 data URIs
(``data:image/png;base64,...``) wrapped in an EncodedImage.
"""

import base64
import binascii
import mimetypes
import re
from typing import BinaryIO, Optional

from core.exceptions import ReadError
from models.editor import EncodedImage

DEFAULT_CONTENT_TYPE = "image/png"
FALLBACK_UPLOAD_TYPE = "application/octet-stream"

_DATA_URI_PATTERN = re.compile(r"^data:(.+);base64,")


def build_data_uri(payload: str, content_type: str) -> str:
    """Wrap a base64 payload into a data URI"""
    return f"data:{content_type};base64,{payload}"


def strip_encoding_marker(encoded: str) -> str:
    """
    Return the payload portion of a data URI.

    Everything up to and including the first comma is dropped. Input without
    a comma (or with nothing after it) is returned unchanged.
    """
    _, separator, payload = encoded.partition(",")
    if not separator or not payload:
        return encoded
    return payload


def extract_content_type(encoded: str) -> str:
    """Best-effort content type from the data URI prefix, image/png if absent"""
    match = _DATA_URI_PATTERN.match(encoded)
    return match.group(1) if match else DEFAULT_CONTENT_TYPE


def encode_bytes(data: bytes, content_type: str) -> EncodedImage:
    payload = base64.b64encode(data).decode("ascii")
    content = build_data_uri(payload, content_type)
    return EncodedImage(content=content, content_type=extract_content_type(content))


def encode_file(
    source: BinaryIO,
    content_type: Optional[str] = None,
    filename: Optional[str] = None,
) -> EncodedImage:
    """
    Read a binary file object and encode it as an EncodedImage.

    Args:
        source: Readable binary file object
        content_type: Declared content type, if the caller knows it
        filename: Used to guess the content type when none is declared

    Raises:
        ReadError: if the byte source cannot be read
    """
    try:
        data = source.read()
    except (OSError, ValueError, AttributeError) as e:
        raise ReadError("Failed to convert file to base64") from e

    if not isinstance(data, (bytes, bytearray)):
        raise ReadError("Failed to convert file to base64")

    if not content_type and filename:
        content_type, _ = mimetypes.guess_type(filename)

    return encode_bytes(bytes(data), content_type or FALLBACK_UPLOAD_TYPE)


def decode_image(image: EncodedImage) -> bytes:
    """Decode the binary payload of an EncodedImage"""
    try:
        return base64.b64decode(strip_encoding_marker(image.content), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ReadError("Failed to decode image data") from e
