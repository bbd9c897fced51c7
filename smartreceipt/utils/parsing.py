"""
smartreceipt/utils/parsing.py

Purpose: Input parsing

- Comma/newline separated lists with thousands-separator repair
- Price parsing and formatting
- "<product> x<N>" quantity shorthand
- Contact info split into email and phone
"""

import math
import re
from typing import Iterable, List, Optional, Tuple

from smartreceipt.utils.constants import CURRENCY

QUICK_ADD_PATTERN = re.compile(r"(.+?)\s+x(\d+)", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
PHONE_PATTERN = re.compile(r"\+?\d+")

MAX_QUICK_ADD_QUANTITY = 100


def _is_number(value: str) -> bool:
    try:
        number = float(value)
    except ValueError:
        return False
    return math.isfinite(number)


def parse_input_list(text: str) -> List[str]:
    """
    Splits user input on commas and newlines.

    A short number followed by a three-digit group is treated as one
    thousands-separated number: "Rice, 30,000" -> ["Rice", "30000"].
    """
    if not text:
        return []

    raw_parts = text.replace("\n", ",").split(",")
    parts: List[str] = []

    i = 0
    while i < len(raw_parts):
        part = raw_parts[i].strip()
        if not part:
            i += 1
            continue

        next_part = raw_parts[i + 1].strip() if i + 1 < len(raw_parts) else None
        if (
            _is_number(part)
            and len(part) <= 3
            and next_part
            and len(next_part) == 3
            and next_part.isdecimal()
        ):
            parts.append(part + next_part)
            i += 2
            continue

        parts.append(part)
        i += 1

    return [p.replace(",", "") for p in parts]


def parse_price(text: str) -> Optional[float]:
    """
    Parses a single price such as "1,500", "₦2000" or "12.50".

    Returns:
        The price, or None when the text is not a non-negative number
    """
    if text is None:
        return None
    cleaned = str(text).strip().replace(",", "").replace(CURRENCY, "").strip()
    if not cleaned or not _is_number(cleaned):
        return None
    value = float(cleaned)
    if value < 0:
        return None
    return value


def price_to_str(value) -> str:
    """Stores prices as strings; whole numbers lose their decimal point."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.2f}".rstrip("0").rstrip(".")


def compute_subtotal(prices: Iterable) -> float:
    """Sums prices; missing or non-numeric entries count as zero."""
    total = 0.0
    for price in prices:
        parsed = parse_price(price) if price is not None else None
        total += parsed or 0.0
    return total


def format_amount(value) -> str:
    """Formats an amount as Naira with thousands separators: 1500 -> '₦1,500'."""
    number = float(value or 0)
    if number.is_integer():
        return f"{CURRENCY}{int(number):,}"
    return f"{CURRENCY}{number:,.2f}"


def parse_quick_add(part: str) -> Optional[Tuple[str, int]]:
    """
    Recognizes the "<product> x<N>" shorthand.

    Returns:
        (product name, quantity) or None when the part is a plain item
    """
    match = QUICK_ADD_PATTERN.fullmatch(part.strip())
    if not match:
        return None
    name = match.group(1).strip()
    quantity = int(match.group(2))
    if not name or quantity < 1 or quantity > MAX_QUICK_ADD_QUANTITY:
        return None
    return name, quantity


def parse_contact_info(text: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Splits free-form contact text into (email, phone).

    The first email-looking token is the email; whatever remains is the
    phone if it contains digits.
    """
    email_match = EMAIL_PATTERN.search(text or "")
    email = email_match.group(0) if email_match else None

    remainder = (text or "").replace(email, "") if email else (text or "")
    remainder = remainder.strip()
    phone = remainder if remainder and PHONE_PATTERN.search(remainder) else None

    return email, phone


def strip_quotes(text: str) -> str:
    return text.replace('"', "").replace("“", "").replace("”", "").strip()
