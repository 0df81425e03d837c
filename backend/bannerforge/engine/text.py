"""Text rules: truncation, name sizing, amount formatting, wrapping."""

from __future__ import annotations

import math
import re
import textwrap
from collections.abc import Sequence

ELLIPSIS = "..."

_EMOJI_RE = re.compile(
    "["
    "\U0001F300-\U0001FAFF"  # pictographs, emoticons, transport, supplemental
    "\U0001F1E0-\U0001F1FF"  # flags
    "\u2600-\u27BF"  # misc symbols, dingbats
    "\u2B00-\u2BFF"  # arrows, stars
    "\uFE00-\uFE0F"  # variation selectors
    "\u200D"  # zero-width joiner
    "]+"
)


def truncate(text: str, max_length: int) -> str:
    """First ``max_length`` characters plus an ellipsis when longer."""
    if len(text) > max_length:
        return text[:max_length] + ELLIPSIS
    return text


def name_font_size(
    display_name: str,
    tiers: Sequence[tuple[int, int]] = ((18, 36), (14, 42), (10, 48)),
    base: int = 54,
) -> int:
    """Font size for an already-truncated name; longer names get smaller."""
    length = len(display_name)
    for threshold, size in tiers:
        if length > threshold:
            return size
    return base


def fit_name(
    name: str,
    max_length: int = 20,
    tiers: Sequence[tuple[int, int]] = ((18, 36), (14, 42), (10, 48)),
    base: int = 54,
) -> tuple[str, int]:
    """Truncate, then size from the truncated string. Returns (text, size)."""
    shown = truncate(name, max_length)
    return shown, name_font_size(shown, tiers, base)


def format_amount(value: str) -> str:
    """Group digits the Indian way (12,34,567). Non-numeric text is kept."""
    raw = value.replace(",", "").strip()
    try:
        number = float(raw)
    except ValueError:
        return value
    if not math.isfinite(number):
        return value
    # Round before splitting so 1.999 carries into the whole part
    text = f"{abs(number):.2f}".rstrip("0").rstrip(".")
    negative = number < 0 and text != "0"
    digits, _, fraction = text.partition(".")
    fraction = f".{fraction}" if fraction else ""
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return ("-" if negative else "") + digits + fraction


def display_rank(rank: str) -> str:
    return re.sub(r"[-–—]", " ", rank).strip()


def strip_emojis(text: str) -> str:
    return _EMOJI_RE.sub("", text).strip()


def wrap(text: str, width: int) -> list[str]:
    """Deterministic character-count wrap (no font metrics involved)."""
    return textwrap.wrap(text, width=width) or [text]


def estimate_width(text: str, size: float, letter_spacing: float = 0) -> float:
    """Approximate line width from the character count (0.6 em per glyph)."""
    return len(text) * (size * 0.6 + letter_spacing)
