import pytest

from backend.rasoi.models.recipe import LanguageCode
from backend.rasoi.services.bilingual import HINDI_UNAVAILABLE, display_text, split, variant
from backend.rasoi.services.sections import UNTITLED, extract_title


def test_split_on_marker(chai_content):
    parts = split(chai_content)
    assert "**Name:** Masala Chai" in parts.en
    assert "Hindi Translation" not in parts.en
    assert parts.hi.strip().startswith("**नाम:** मसाला चाय")


@pytest.mark.parametrize(
    "marker",
    ["**Hindi Translation**", "**Hindi Translation:**", "**Hindi Translation：**", "**HINDI translation**"],
)
def test_marker_variants(marker):
    parts = split(f"english part\n{marker}\nहिंदी भाग")
    assert parts.en == "english part\n"
    assert parts.hi == "\nहिंदी भाग"


def test_missing_marker_leaves_hindi_empty(tomato_content):
    parts = split(tomato_content)
    assert parts.en == tomato_content
    assert parts.hi == ""
    assert extract_title(parts.hi, LanguageCode.HI) == UNTITLED


def test_only_first_marker_splits():
    parts = split("en\n**Hindi Translation**\nhi one\n**Hindi Translation**\nhi two")
    assert parts.en == "en\n"
    assert "hi one" in parts.hi and "hi two" in parts.hi


def test_unbolded_marker_is_not_a_split():
    parts = split("en\nHindi Translation:\nhi")
    assert parts.hi == ""


def test_variant_picks_language(chai_content):
    assert variant(chai_content, "en") == split(chai_content).en
    assert variant(chai_content, LanguageCode.HI) == split(chai_content).hi


def test_variant_rejects_unknown_language(chai_content):
    with pytest.raises(ValueError):
        variant(chai_content, "fr")


def test_display_text_placeholder_for_missing_hindi(tomato_content):
    assert display_text(tomato_content, "hi") == HINDI_UNAVAILABLE
    assert display_text(tomato_content, "en") == tomato_content.strip()


def test_empty_input():
    assert split("").en == ""
    assert split(None).hi == ""
