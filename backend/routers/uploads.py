"""Uploads router: receipt image upload and AI receipt parsing."""

import logging
import os
from typing import Union

from fastapi import APIRouter, Depends, File, UploadFile, status
from starlette.datastructures import UploadFile as StarletteUploadFile

import schemas
from config import RECEIPT_DIR
from ocr.parser import parse_receipt_fields
from ocr.service import receipt_scanner
from utils.errors import (
    NotFoundError, ServiceUnavailableError, UnprocessableError, UpstreamError, ValidationError,
    persistence_errors
)
from utils.files import (
    ALLOWED_IMAGE_TYPES, generate_receipt_filename, is_safe_filename, read_upload_file_securely,
    save_receipt
)
from utils.rate_limiter import receipt_parse_rate_limiter

logger = logging.getLogger(__name__)

MAX_RECEIPT_BYTES = 10 * 1024 * 1024  # 10MB

# Stored extension -> media type sent to the model
SCAN_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "heic": "image/heic",
}


router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post(
    "/receipt",
    response_model=schemas.Envelope[schemas.ReceiptUpload],
    status_code=status.HTTP_201_CREATED,
)
async def upload_receipt(file: Union[UploadFile, str, None] = File(None)):
    """
    Store a receipt image and return its generated file name.

    The declared media type must be JPEG, PNG, WebP or HEIC and the body at
    most 10 MB. The stored name never reuses the client's file name.
    """
    with persistence_errors(None, "Failed to upload receipt"):
        # A plain text form field under "file" is not an upload
        if not isinstance(file, StarletteUploadFile):
            raise ValidationError("No file provided")

        extension = ALLOWED_IMAGE_TYPES.get(file.content_type)
        if not extension:
            raise ValidationError("Unsupported file type. Allowed: JPEG, PNG, WebP, HEIC")

        content = await read_upload_file_securely(file, MAX_RECEIPT_BYTES)

        filename = generate_receipt_filename(extension)
        save_receipt(RECEIPT_DIR, filename, content)
        logger.info(f"Stored receipt {filename} ({len(content)} bytes)")

        return {"data": {"path": filename}, "error": None}


@router.post(
    "/receipt/parse",
    response_model=schemas.Envelope[schemas.ReceiptParseResult],
    dependencies=[Depends(receipt_parse_rate_limiter)],
)
def parse_receipt(payload: schemas.ReceiptParseRequest):
    """Read amount, date, merchant and category off a previously uploaded receipt."""
    with persistence_errors(None, "Failed to parse receipt"):
        if not receipt_scanner.is_configured:
            raise ServiceUnavailableError("AI scanning is not configured")

        receipt_path = payload.receipt_path
        if not isinstance(receipt_path, str) or not receipt_path:
            raise ValidationError("receiptPath is required")
        if not is_safe_filename(receipt_path):
            raise ValidationError("Invalid receiptPath")

        extension = receipt_path.rsplit(".", 1)[-1].lower() if "." in receipt_path else ""
        mime_type = SCAN_MIME_TYPES.get(extension)
        if not mime_type:
            raise UnprocessableError("Unsupported image type for AI scanning")

        try:
            with open(os.path.join(RECEIPT_DIR, receipt_path), "rb") as receipt_file:
                image_content = receipt_file.read()
        except OSError:
            raise NotFoundError("Receipt file not found")

        try:
            raw_text = receipt_scanner.extract_text(image_content, mime_type)
        except Exception as e:
            logger.warning(f"Receipt scan failed for {receipt_path}: {e}")
            raise UpstreamError(f"AI request failed: {e}")

        try:
            fields = parse_receipt_fields(raw_text)
        except ValueError:
            raise UnprocessableError("Could not parse AI response")

        return {"data": fields, "error": None}
