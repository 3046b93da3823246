"""Receipt analysis client.

The classifier behind ``RECEIPT_ANALYSIS_URL`` proposes expense fields from a
receipt image. Its answer is treated as untrusted pre-fill: anything that does
not look like a valid field value is dropped before it reaches the caller.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

import requests

from expenseflow.errors import ReceiptAnalysisError, ValidationError

logger = logging.getLogger(__name__)

EXPENSE_CATEGORIES = ("Travel", "Meals", "Lodging", "Office Supplies", "Software")

_DATA_URL = re.compile(r"^data:(image/[a-zA-Z+.-]+);base64,(.+)$", re.DOTALL)
_MAX_TEXT = 255


def parse_data_url(data_url: str) -> Tuple[str, str]:
    """Split a ``data:image/...;base64,...`` URL into mime type and payload."""
    match = _DATA_URL.match(data_url) if isinstance(data_url, str) else None
    if not match:
        raise ValidationError(
            "Invalid image format. Please ensure the file is a valid image (PNG, JPG, WEBP)."
        )
    return match.group(1), match.group(2)


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value[:_MAX_TEXT] or None


def sanitize_prefill(raw: Any) -> Dict[str, Any]:
    """Keep only well-formed suggestions from the classifier's output."""
    if not isinstance(raw, dict):
        return {}

    prefill: Dict[str, Any] = {}

    try:
        amount = Decimal(str(raw.get("amount")))
    except (InvalidOperation, ValueError):
        amount = None
    if amount is not None and amount.is_finite() and amount > 0:
        prefill["amount"] = str(amount.quantize(Decimal("0.01")))

    currency = _clean_text(raw.get("currency"))
    if currency and len(currency) == 3 and currency.isalpha():
        prefill["currency"] = currency.upper()

    raw_date = _clean_text(raw.get("date"))
    if raw_date:
        try:
            prefill["date"] = date.fromisoformat(raw_date).isoformat()
        except ValueError:
            pass

    category = _clean_text(raw.get("category"))
    if category:
        known = {name.lower(): name for name in EXPENSE_CATEGORIES}
        if category.lower() in known:
            prefill["category"] = known[category.lower()]

    for name in ("merchant", "description"):
        value = _clean_text(raw.get(name))
        if value:
            prefill[name] = value

    return prefill


def analyze_receipt(
    data_url: str,
    service_url: Optional[str],
    api_key: Optional[str] = None,
    timeout: int = 30,
) -> Dict[str, Any]:
    """Ask the receipt classifier for pre-fill values."""
    mime_type, payload = parse_data_url(data_url)
    if not service_url:
        raise ReceiptAnalysisError("Receipt analysis is not configured.")

    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    try:
        response = requests.post(
            service_url,
            json={"mime_type": mime_type, "data": payload, "categories": list(EXPENSE_CATEGORIES)},
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
        raw = response.json()
    except requests.RequestException as exc:
        logger.warning("Receipt analysis request failed: %s", exc)
        raise ReceiptAnalysisError("Failed to analyze receipt.") from exc
    except ValueError as exc:
        logger.warning("Receipt analysis returned a non-JSON body")
        raise ReceiptAnalysisError("Receipt analysis returned an unreadable response.") from exc

    prefill = sanitize_prefill(raw)
    logger.info("Receipt analysis proposed fields: %s", ", ".join(sorted(prefill)) or "none")
    return prefill
