"""
Common utilities and shared functions.
Symbol/platform normalization, currency formatting, sentiment classification
and lenient JSON extraction from model output.
"""

import json
import math
import re
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


CURRENCY_SYMBOLS = {
    "PHP": "₱",
    "USD": "$",
    "EUR": "€",
    "JPY": "¥",
}

# Greedy: first "{" to last "}" so nested objects survive
_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

POSITIVE_KEYWORDS = ("bullish", "positive")
NEGATIVE_KEYWORDS = ("bearish", "negative")


def normalize_symbol(symbol: str) -> str:
    """Upper-case and trim a ticker or account name."""
    return (symbol or "").strip().upper()


def normalize_platform(platform: str) -> str:
    """Lower-case and trim a platform label."""
    return (platform or "").strip().lower()


def format_currency(value: float, currency_code: str, precision: int = 2) -> str:
    """
    Format an amount in the given currency.

    Args:
        value: Amount to format
        currency_code: ISO currency code (e.g., "PHP")
        precision: Number of decimal places

    Returns:
        Formatted string such as "₱1,234.50" or "-$12.00"
    """
    symbol = CURRENCY_SYMBOLS.get(currency_code.upper(), f"{currency_code.upper()} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{precision}f}"


def format_percent(value: float) -> str:
    """Format a percentage with an explicit sign, e.g. "+3.25%"."""
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


def classify_sentiment(text: str) -> str:
    """
    Coarse sentiment from keywords.

    Positive keywords win over negative ones when both appear.

    Returns:
        "positive", "negative" or "neutral"
    """
    lowered = (text or "").lower()
    if any(word in lowered for word in POSITIVE_KEYWORDS):
        return "positive"
    if any(word in lowered for word in NEGATIVE_KEYWORDS):
        return "negative"
    return "neutral"


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull the brace-delimited JSON object out of free text.

    Args:
        text: Model response, possibly wrapped in prose or code fences

    Returns:
        Parsed dict, or None when no parsable object is present
    """
    match = _JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing error: {e}")
        return None
    return parsed if isinstance(parsed, dict) else None


def to_price(value: Any) -> Optional[float]:
    """Coerce a model-supplied price to float; None for anything non-numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        price = float(value)
    elif isinstance(value, str):
        try:
            price = float(value.replace(",", "").strip())
        except ValueError:
            return None
    else:
        return None
    return price if math.isfinite(price) else None
