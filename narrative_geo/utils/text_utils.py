"""
narrative_geo/utils/text_utils.py

Text helpers shared by the loaders and the address normalizer.

PROBLEM SOLVED:
- Manually cleaned CSV exports mix NaN, None, "" and padded strings for
  the same "nothing here" value
- Transcribed place names carry decomposed accents and doubled spaces
  (e.g. "Lahore " vs "Lahore", "Multān" in NFD vs NFC)
- Metadata fields keep annotation labels such as "Age in 1947: 30"

USAGE:
    from narrative_geo.utils.text_utils import clean_fragment, strip_prefix

    clean_fragment("  Old   Anarkali ")           # → "Old Anarkali"
    strip_prefix("Age in 1947: 30", "Age in 1947: ")  # → "30"
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any, Optional

import pandas as pd


_WHITESPACE = re.compile(r"\s+")


def is_blank(value: Any) -> bool:
    """True for None, NaN/NA and strings holding only whitespace."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_fragment(value: Any) -> str:
    """
    Turn a free-text cell into a canonical string.

    Handles:
    - None / NaN / NA → ""
    - surrounding and repeated inner whitespace → single spaces
    - Unicode normalised to NFC so visually equal names compare equal
    - non-string values → str(value)

    Examples:
        >>> clean_fragment(None)
        ''
        >>> clean_fragment("  Rawalpindi\\t Cantt ")
        'Rawalpindi Cantt'
    """
    if is_blank(value):
        return ""
    text = value if isinstance(value, str) else str(value)
    text = _WHITESPACE.sub(" ", text).strip()
    return unicodedata.normalize("NFC", text)


def strip_prefix(value: Any, prefix: Optional[str]) -> Any:
    """
    Remove an exact leading annotation label.

    A value without the label passes through unchanged; that is not an error.
    Non-string values are returned as they are.

    Examples:
        >>> strip_prefix("Age in 1947: 12", "Age in 1947: ")
        '12'
        >>> strip_prefix("12", "Age in 1947: ")
        '12'
    """
    if not prefix or not isinstance(value, str):
        return value
    if value.startswith(prefix):
        return value[len(prefix):]
    return value


def canonical_token(value: Any) -> str:
    """Lowercase alphanumeric form used to match spelling variants of a category."""
    return re.sub(r"[^0-9a-z]", "", clean_fragment(value).lower())
