"""
Splits a recipe document into its English and Hindi variants.

The generator writes the English recipe first, then a bold
``**Hindi Translation**`` heading, then the Hindi recipe.
"""

import re

from ..models.recipe import BilingualContent, LanguageCode

HINDI_MARKER = re.compile(r"\*\*Hindi Translation[:：]?\*\*", re.IGNORECASE)
HINDI_UNAVAILABLE = "❌ Hindi version not available."


def split(raw_content: str) -> BilingualContent:
    match = HINDI_MARKER.search(raw_content or "")
    if not match:
        return BilingualContent(en=raw_content or "", hi="")
    return BilingualContent(
        en=raw_content[: match.start()],
        hi=raw_content[match.end():],
    )


def variant(raw_content: str, language: LanguageCode) -> str:
    """Return the slice of ``raw_content`` written in ``language``."""
    parts = split(raw_content)
    if LanguageCode(language) is LanguageCode.HI:
        return parts.hi
    return parts.en


def display_text(raw_content: str, language: LanguageCode) -> str:
    text = variant(raw_content, language).strip()
    if not text and LanguageCode(language) is LanguageCode.HI:
        return HINDI_UNAVAILABLE
    return text
