import pytest
from unittest.mock import patch

from main import app
from utils.rate_limiter import receipt_parse_rate_limiter


@pytest.fixture
def mock_scanner():
    with patch("routers.uploads.receipt_scanner") as scanner:
        scanner.is_configured = True
        yield scanner


@pytest.fixture
def stored_receipt(receipt_dir):
    (receipt_dir / "1767225600000-9f86d081884c7d65.jpg").write_bytes(b"\xff\xd8\xff\xd9")
    return "1767225600000-9f86d081884c7d65.jpg"


def parse(client, receipt_path):
    return client.post("/uploads/receipt/parse", json={"receiptPath": receipt_path})


def test_parse_receipt(client, mock_scanner, stored_receipt):
    mock_scanner.extract_text.return_value = (
        '{"amount": 42.5, "date": "2025-12-27", "description": "Hilton Garden Inn", "category": "hotel"}'
    )

    response = parse(client, stored_receipt)

    assert response.status_code == 200
    assert response.json() == {
        "data": {"amount": 42.5, "date": "2025-12-27", "description": "Hilton Garden Inn", "category": "hotel"},
        "error": None,
    }
    image_bytes, mime_type = mock_scanner.extract_text.call_args.args
    assert image_bytes == b"\xff\xd8\xff\xd9"
    assert mime_type == "image/jpeg"


def test_parse_receipt_strips_markdown_fences(client, mock_scanner, stored_receipt):
    mock_scanner.extract_text.return_value = '```json\n{"amount": 12, "category": "food"}\n```'

    response = parse(client, stored_receipt)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["amount"] == 12
    assert data["category"] == "food"
    assert data["date"] is None
    assert data["description"] is None


def test_parse_receipt_sanitizes_fields(client, mock_scanner, stored_receipt):
    mock_scanner.extract_text.return_value = (
        '{"amount": -3, "date": "2025-13-45", "description": "' + "M" * 80 + '", "category": "lodging"}'
    )

    data = parse(client, stored_receipt).json()["data"]

    assert data["amount"] is None
    assert data["date"] is None
    assert data["description"] == "M" * 60
    assert data["category"] is None


def test_parse_receipt_rounds_amount(client, mock_scanner, stored_receipt):
    mock_scanner.extract_text.return_value = '{"amount": 19.999, "date": null}'
    assert parse(client, stored_receipt).json()["data"]["amount"] == 20.0


def test_parse_receipt_not_configured(client, receipt_dir):
    with patch("routers.uploads.receipt_scanner") as scanner:
        scanner.is_configured = False
        response = parse(client, "anything.jpg")

    assert response.status_code == 503
    assert response.json() == {"data": None, "error": "AI scanning is not configured"}
    scanner.extract_text.assert_not_called()


@pytest.mark.parametrize("receipt_path", [None, "", 42])
def test_parse_receipt_requires_path(client, mock_scanner, receipt_path):
    response = parse(client, receipt_path)
    assert response.status_code == 400
    assert response.json()["error"] == "receiptPath is required"


@pytest.mark.parametrize("receipt_path", ["../db.sqlite3", "a/b.jpg", "..\\b.jpg"])
def test_parse_receipt_rejects_traversal(client, mock_scanner, receipt_path):
    response = parse(client, receipt_path)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid receiptPath"
    mock_scanner.extract_text.assert_not_called()


def test_parse_receipt_unsupported_extension(client, mock_scanner, receipt_dir):
    (receipt_dir / "1-receipt.pdf").write_bytes(b"%PDF")
    response = parse(client, "1-receipt.pdf")
    assert response.status_code == 422
    assert response.json()["error"] == "Unsupported image type for AI scanning"


def test_parse_receipt_missing_file(client, mock_scanner, receipt_dir):
    response = parse(client, "1-missing.png")
    assert response.status_code == 404
    assert response.json()["error"] == "Receipt file not found"


def test_parse_receipt_upstream_failure(client, mock_scanner, stored_receipt):
    mock_scanner.extract_text.side_effect = RuntimeError("quota exceeded")

    response = parse(client, stored_receipt)

    assert response.status_code == 502
    assert response.json()["error"] == "AI request failed: quota exceeded"


@pytest.mark.parametrize("reply", ["I could not read this receipt.", "[1, 2, 3]"])
def test_parse_receipt_unreadable_reply(client, mock_scanner, stored_receipt, reply):
    mock_scanner.extract_text.return_value = reply

    response = parse(client, stored_receipt)

    assert response.status_code == 422
    assert response.json()["error"] == "Could not parse AI response"


def test_parse_receipt_is_rate_limited(client, mock_scanner, stored_receipt):
    app.dependency_overrides.pop(receipt_parse_rate_limiter, None)
    receipt_parse_rate_limiter.reset()
    mock_scanner.extract_text.return_value = '{"amount": 1}'

    try:
        for _ in range(receipt_parse_rate_limiter.requests_limit):
            assert parse(client, stored_receipt).status_code == 200

        response = parse(client, stored_receipt)
        assert response.status_code == 429
        assert response.json() == {"data": None, "error": "Too many requests. Please try again later."}
    finally:
        receipt_parse_rate_limiter.reset()


def test_rate_limit_is_per_client(client, mock_scanner, stored_receipt):
    app.dependency_overrides.pop(receipt_parse_rate_limiter, None)
    receipt_parse_rate_limiter.reset()
    mock_scanner.extract_text.return_value = '{"amount": 1}'

    try:
        for _ in range(receipt_parse_rate_limiter.requests_limit):
            client.post(
                "/uploads/receipt/parse",
                json={"receiptPath": stored_receipt},
                headers={"X-Forwarded-For": "203.0.113.5"},
            )

        other = client.post(
            "/uploads/receipt/parse",
            json={"receiptPath": stored_receipt},
            headers={"X-Forwarded-For": "198.51.100.7, 10.0.0.1"},
        )
        assert other.status_code == 200
    finally:
        receipt_parse_rate_limiter.reset()


def test_scanner_without_api_key_is_disabled():
    from ocr.service import ReceiptScanService

    scanner = ReceiptScanService(api_key=None)

    assert scanner.is_configured is False
    with pytest.raises(RuntimeError):
        scanner.extract_text(b"", "image/jpeg")


def test_scanner_sends_image_and_prompt():
    from ocr.service import EXTRACTION_PROMPT, ReceiptScanService

    with patch("ocr.service.genai") as genai:
        client = genai.Client.return_value
        client.models.generate_content.return_value.text = '{"amount": 5}'

        scanner = ReceiptScanService(api_key="test-key", model_name="gemini-test")
        text = scanner.extract_text(b"img", "image/png")

    genai.Client.assert_called_once_with(api_key="test-key")
    assert text == '{"amount": 5}'
    call = client.models.generate_content.call_args
    assert call.kwargs["model"] == "gemini-test"
    image_part, prompt = call.kwargs["contents"]
    assert image_part.inline_data.data == b"img"
    assert image_part.inline_data.mime_type == "image/png"
    assert prompt == EXTRACTION_PROMPT
