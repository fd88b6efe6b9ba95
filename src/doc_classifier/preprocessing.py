"""Text normalization for raw documents and ad-hoc input.

Documents are reduced to lowercase letters (accented Latin letters
included) separated by single spaces, so that every feature extractor
and classifier can tokenize by splitting on whitespace.
"""

from __future__ import annotations

import re
import unicodedata

# Basic Latin letters plus Latin-1 Supplement and Latin Extended-A/B letters
_NON_LETTER_RE = re.compile(r"[^a-zA-ZÀ-ÖØ-öø-ɏ ]")
_MULTI_SPACE_RE = re.compile(r" {2,}")


def normalize_text(text: str) -> str:
    """Lowercase ``text`` and strip everything but letters and spaces.

    Line breaks and tabs become spaces; runs of spaces are collapsed.

    Example::

        >>> normalize_text("Vote, vote -- VOTE!\\nČeský 2024")
        'vote vote vote český'
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r", " ").replace("\n", " ").replace("\t", " ").replace("\xa0", " ")
    text = _NON_LETTER_RE.sub("", text)
    text = _MULTI_SPACE_RE.sub(" ", text)
    return text.strip().lower()


def tokenize(text: str) -> list[str]:
    """Split normalized text on whitespace, dropping empty tokens."""
    return text.split()
