import logging

from google import genai
from google.genai import types

from config import GOOGLE_AI_API_KEY, GOOGLE_AI_MODEL

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract these fields from the receipt:\n"
    "- amount: total amount charged (number after tax, e.g. 42.50). Null if unclear.\n"
    '- date: transaction date as "YYYY-MM-DD". Null if not found.\n'
    '- description: merchant name, max 60 chars (e.g. "Hilton Garden Inn"). Null if unclear.\n'
    "- category: best match from: hotel, flight, food, gas, ev_charging, tours, shopping, other.\n\n"
    "Respond ONLY with valid JSON, no markdown, no explanation:\n"
    '{"amount": <number|null>, "date": "<YYYY-MM-DD|null>", '
    '"description": "<string|null>", "category": "<string|null>"}'
)


class ReceiptScanService:
    """
    Singleton wrapper around the Gemini model used to read receipt images.
    Configures the client once and reuses it for all requests.
    """

    def __init__(self, api_key: str | None = GOOGLE_AI_API_KEY, model_name: str = GOOGLE_AI_MODEL):
        self.model_name = model_name
        self.client = None
        if not api_key:
            logger.info("GOOGLE_AI_API_KEY not set. Receipt scanning is disabled.")
            return
        try:
            self.client = genai.Client(api_key=api_key)
        except Exception as e:
            logger.warning(f"Failed to initialize receipt scanning model: {e}")
            self.client = None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def extract_text(self, image_bytes: bytes, mime_type: str) -> str:
        """
        Ask the model for the receipt fields.

        Args:
            image_bytes: Raw image bytes
            mime_type: Media type of the image (image/jpeg, image/png, ...)

        Returns:
            The model's raw text reply, expected to be a JSON object.

        Raises:
            Exception: If the model call fails or the service is not configured
        """
        if not self.client:
            raise RuntimeError("Receipt scanning is not configured")

        response = self.client.models.generate_content(
            model=self.model_name,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                EXTRACTION_PROMPT,
            ],
        )
        return response.text


# Singleton instance - initialized once, reused for all requests
receipt_scanner = ReceiptScanService()
