"""Normalisation of raw spine text into book titles."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9_ \-:&'.,]")
_LEADING_NUMBER_RE = re.compile(r"^\d+\s*")
MIN_TOKEN_LENGTH = 2


def _clean_once(title: str) -> str:
    title = _WHITESPACE_RE.sub(" ", title)
    title = _DISALLOWED_RE.sub("", title)
    title = _LEADING_NUMBER_RE.sub("", title)
    title = title.strip()
    return " ".join(token for token in title.split(" ") if len(token) >= MIN_TOKEN_LENGTH)


def clean_book_title(title: str) -> str:
    """Strip OCR noise from a spine title.

    Collapses whitespace, drops punctuation other than ``-:&'.,``, removes a
    leading shelf or volume number and discards one-character tokens. The
    steps repeat until nothing changes, since dropping a token can expose a
    new leading number (``"a 12 Rings"``).
    """
    cleaned = _clean_once(title)
    while True:
        again = _clean_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


__all__ = ["clean_book_title"]
