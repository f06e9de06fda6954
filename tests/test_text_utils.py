import math

import pandas as pd

from narrative_geo.utils.text_utils import canonical_token, clean_fragment, is_blank, strip_prefix


def test_is_blank_variants():
    assert is_blank(None)
    assert is_blank(float("nan"))
    assert is_blank(pd.NA)
    assert is_blank("   ")
    assert not is_blank("0")
    assert not is_blank(0)


def test_clean_fragment_collapses_whitespace():
    assert clean_fragment("  Old   Anarkali\t") == "Old Anarkali"
    assert clean_fragment(None) == ""
    assert clean_fragment(math.nan) == ""
    assert clean_fragment(12) == "12"


def test_clean_fragment_nfc():
    decomposed = "Multa\u0304n"
    assert clean_fragment(decomposed) == "Mult\u0101n"


def test_strip_prefix_exact_only():
    assert strip_prefix("Age in 1947: 12", "Age in 1947: ") == "12"
    assert strip_prefix("12", "Age in 1947: ") == "12"
    assert strip_prefix("age in 1947: 12", "Age in 1947: ") == "age in 1947: 12"
    assert strip_prefix("12", None) == "12"


def test_canonical_token():
    assert canonical_token("Not Mentioned") == "notmentioned"
    assert canonical_token(" not_mentioned ") == "notmentioned"
