"""Turn the model's reply into sanitized receipt fields."""

import json
import math
import re
from datetime import datetime

import models

DESCRIPTION_MAX_LENGTH = 60

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
FENCE_END = re.compile(r"\s*```\s*$")

VALID_CATEGORIES = {category.value for category in models.ExpenseCategory}


def strip_code_fences(raw_text: str) -> str:
    return FENCE_END.sub("", FENCE_START.sub("", raw_text)).strip()


def clean_amount(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return round(value * 100) / 100


def clean_date(value):
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return None
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None
    return value


def clean_description(value):
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()[:DESCRIPTION_MAX_LENGTH]


def clean_category(value):
    return value if isinstance(value, str) and value in VALID_CATEGORIES else None


def parse_receipt_fields(raw_text: str) -> dict:
    """
    Parse the JSON object in the model reply, dropping any markdown fences.

    Every field is validated on its own; anything that does not fit becomes None.

    Raises:
        ValueError: If the reply is not a JSON object
    """
    parsed = json.loads(strip_code_fences(raw_text))
    if not isinstance(parsed, dict):
        raise ValueError("Receipt reply is not a JSON object")

    return {
        "amount": clean_amount(parsed.get("amount")),
        "date": clean_date(parsed.get("date")),
        "description": clean_description(parsed.get("description")),
        "category": clean_category(parsed.get("category")),
    }
