"""Currency conversion helpers."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

EXCHANGE_API_URL = "https://api.exchangerate-api.com/v4/latest/{base}"


def fetch_exchange_rates(base_currency: str, api_url: str = EXCHANGE_API_URL, timeout: int = 10) -> Dict[str, float]:
    """Fetch exchange rates for the given base currency."""
    try:
        response = requests.get(api_url.format(base=base_currency.upper()), timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Failed to fetch exchange rates for %s: %s", base_currency, exc)
        return {}

    return payload.get("rates", {})


def convert_currency(
    amount: Decimal | float,
    source_currency: str,
    target_currency: str,
    api_url: str = EXCHANGE_API_URL,
) -> Optional[Decimal]:
    """Convert an amount between currencies, or None when no rate is available."""
    if source_currency.upper() == target_currency.upper():
        return Decimal(str(amount))

    rates = fetch_exchange_rates(source_currency, api_url)
    rate = rates.get(target_currency.upper())
    if not rate:
        logger.info("No %s->%s rate available; leaving amount unconverted", source_currency, target_currency)
        return None

    converted = Decimal(str(rate)) * Decimal(str(amount))
    return converted.quantize(Decimal("0.01"))
