"""
Text cleanup utilities for raw resume text extraction.

`normalize` is the single gate between the binary extractor and the
extraction service: it cleans, then bounds the text to a configurable
ceiling without splitting words.
"""

from __future__ import annotations

import re
import unicodedata

DEFAULT_LOOKBACK = 100

# Common typographic characters mapped to their plain equivalents
_REPLACEMENTS = {
    "\u2019": "'",   # right single quote
    "\u2018": "'",   # left single quote
    "\u201c": '"',   # left double quote
    "\u201d": '"',   # right double quote
    "\u2013": "-",   # en-dash
    "\u2014": "-",   # em-dash
    "\u2022": "|",   # bullet
    "\u2026": "...", # ellipsis
    "\u00a0": " ",   # non-breaking space
    "\u200b": "",    # zero-width space
    "\ufeff": "",    # BOM
}

# Letters, digits, whitespace and common punctuation survive; everything else is noise
_DISALLOWED_RE = re.compile(r"""[^\w\s@.,\-:;()/+&'"#%|!?]""")
_UNDERSCORE_RUN_RE = re.compile(r"_{2,}")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Normalize unicode, drop characters outside the allow-list, collapse whitespace."""
    text = unicodedata.normalize("NFKC", text)

    for old, new in _REPLACEMENTS.items():
        text = text.replace(old, new)

    text = _DISALLOWED_RE.sub(" ", text)
    # Form-field underlines ("Name: ________") carry no signal
    text = _UNDERSCORE_RUN_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def clean_lines(text: str) -> str:
    """clean_text applied per line; blank lines dropped, line breaks kept."""
    lines = (clean_text(line) for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def truncate_at_word(text: str, max_length: int, lookback: int = DEFAULT_LOOKBACK) -> str:
    """
    Bound text to max_length characters, cutting at the last space or line break
    inside the lookback window. Falls back to a hard cut when the window has none.
    """
    if max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")
    if len(text) <= max_length:
        return text

    window_start = max(0, max_length - lookback)
    # A break exactly at max_length means text[:max_length] already ends on a whole word
    cut = max(
        text.rfind(" ", window_start, max_length + 1),
        text.rfind("\n", window_start, max_length + 1),
    )
    if cut > 0:
        return text[:cut].rstrip()
    return text[:max_length].rstrip()


def normalize(raw_text: str, max_length: int, lookback: int = DEFAULT_LOOKBACK) -> str:
    """Clean raw extracted text and bound it to max_length (see truncate_at_word)."""
    return truncate_at_word(clean_text(raw_text), max_length, lookback)
