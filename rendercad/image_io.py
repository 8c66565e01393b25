from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Union

from .errors import BadRequestError

ImageInput = Union[str, bytes, bytearray, memoryview, os.PathLike]

DEFAULT_MIME_TYPE = "image/jpeg"
DATA_URL_PREFIX = "data:image/"

EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

# Checked in order; only the leading bytes are compared.
MAGIC_NUMBERS = (
    (b"\x89\x50", "image/png"),
    (b"\x47\x49", "image/gif"),
    (b"\x52\x49\x46\x46", "image/webp"),
)


def mime_type_from_extension(path: str | os.PathLike[str]) -> str:
    return EXTENSION_MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


def sniff_mime_type(data: bytes) -> str:
    for signature, mime_type in MAGIC_NUMBERS:
        if data[: len(signature)] == signature:
            return mime_type
    return DEFAULT_MIME_TYPE


def to_data_url(data: bytes, mime_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def looks_like_path(value: str) -> bool:
    return "/" in value or os.sep in value


def encode_image(image: ImageInput) -> str:
    """Normalize an image into a base64 data URL.

    Strings that already are data URLs pass through. Strings without a path
    separator are taken as bare base64 and labelled ``image/jpeg``; note that
    a relative filename such as ``"img"`` falls into this branch too. Other
    strings and path objects are read from disk, and ``OSError`` from that
    read propagates unchanged. Binary buffers get their MIME type from the
    leading magic bytes.
    """
    if isinstance(image, str):
        if image.startswith(DATA_URL_PREFIX):
            return image
        if not looks_like_path(image):
            return f"data:{DEFAULT_MIME_TYPE};base64,{image}"
        return _encode_file(image)

    if isinstance(image, os.PathLike):
        return _encode_file(image)

    if isinstance(image, (bytes, bytearray, memoryview)):
        data = bytes(image)
        return to_data_url(data, sniff_mime_type(data))

    raise BadRequestError("Invalid image format. Expected bytes, file path, or base64 string.")


def _encode_file(path: str | os.PathLike[str]) -> str:
    data = Path(path).read_bytes()
    return to_data_url(data, mime_type_from_extension(path))
