"""File handling utilities for receipt uploads."""

import os
import secrets
import time

from fastapi import UploadFile

from utils.errors import ValidationError

CHUNK_SIZE = 1024 * 1024  # 1MB chunks

# Declared media type -> extension used for the stored file
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
}


def too_large_message(max_size_bytes: int) -> str:
    return f"File too large. Maximum size is {max_size_bytes // (1024 * 1024)} MB"


async def read_upload_file_securely(file: UploadFile, max_size_bytes: int) -> bytes:
    """
    Securely reads an uploaded file, ensuring it doesn't exceed the maximum size.
    Reads in chunks and stops as soon as the limit is crossed, so an oversized
    upload is never held in memory in full.

    Args:
        file: The FastAPI UploadFile object
        max_size_bytes: Maximum allowed file size in bytes

    Returns:
        bytes: The content of the file

    Raises:
        ValidationError: If the file size exceeds the limit
    """
    content = bytearray()

    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break

        content.extend(chunk)

        if len(content) > max_size_bytes:
            raise ValidationError(too_large_message(max_size_bytes))

    return bytes(content)


def generate_receipt_filename(extension: str) -> str:
    """Millisecond timestamp plus 8 random bytes, e.g. 1767225600000-9f86d081884c7d65.jpg"""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(8)}.{extension}"


def save_receipt(directory: str, filename: str, content: bytes) -> str:
    os.makedirs(directory, exist_ok=True)
    file_path = os.path.join(directory, filename)
    with open(file_path, "wb") as buffer:
        buffer.write(content)
    return file_path


def is_safe_filename(name: str) -> bool:
    """Bare file names only: no separators, no parent references."""
    return "/" not in name and "\\" not in name and ".." not in name
