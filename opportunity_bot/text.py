"""
Text helpers for cleaning feed content.

Handles markup stripping, summaries, date labels and stable identifiers.
"""

import logging
import re

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description available."
RECENTLY_POSTED = "Recently posted"
ELLIPSIS = "..."

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def strip_and_normalize(raw: str | None) -> str:
    """
    Remove markup tags and collapse whitespace.

    Parameters
    ----------
    raw : str | None
        Text possibly containing HTML.

    Returns
    -------
    str
        Plain text with single spaces, or an empty string.
    """
    if not raw:
        return ""
    text = _TAG_RE.sub("", raw)
    return _WHITESPACE_RE.sub(" ", text).strip()


def summarize(raw: str | None, max_length: int = 250) -> str:
    """
    Clean text and cut it down to ``max_length`` characters.

    Parameters
    ----------
    raw : str | None
        Text possibly containing HTML.
    max_length : int
        Maximum number of characters kept before the ellipsis.

    Returns
    -------
    str
        The cleaned text, truncated with ``...`` when longer than
        ``max_length``, or a placeholder when there is no input.
    """
    if not raw:
        return NO_DESCRIPTION
    text = strip_and_normalize(raw)
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def format_date_label(raw: str | None) -> str:
    """
    Render a feed date as a short label such as ``Jan 5``.

    Never raises; missing or unparseable dates give ``Recently posted``.
    """
    if not raw:
        return RECENTLY_POSTED
    try:
        parsed = date_parser.parse(raw)
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug("Unparseable date '%s': %s", raw, e)
        return RECENTLY_POSTED
    return f"{parsed:%b} {parsed.day}"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def derive_identifier(seed: str) -> str:
    """
    Compute a short, stable identifier for a string.

    Uses a 32-bit rolling hash (``h * 31 + unit``) over the UTF-16 code
    units of ``seed`` and renders its absolute value in base 36, so ids
    are identical across runs and interpreters.

    Parameters
    ----------
    seed : str
        Usually an item permalink or guid.

    Returns
    -------
    str
        Base-36 identifier.
    """
    data = seed.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + unit)
    return _to_base36(abs(h))
