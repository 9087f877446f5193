"""
Section extraction for one language variant of a recipe document.

Each section is described by a ``SectionRule``: the heading that opens it,
the heading that closes it, which lines inside the block to keep and how
to turn a kept line into a value. The rules live in ``SECTION_RULES`` and
are applied by ``extract_section``. Nothing here raises on malformed text;
a missing heading simply yields an empty list.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Pattern

from ..models.recipe import LanguageCode, NutritionFact

UNTITLED = "Untitled Recipe"

TITLE_PATTERNS = {
    LanguageCode.EN: re.compile(r"^\*\*Name:\*\*\s*(.+)$"),
    LanguageCode.HI: re.compile(r"^\*\*नाम:\*\*\s*(.+)$"),
}

INGREDIENTS_HEADING = re.compile(r"\*\*(?:Ingredients|सामग्री):\*\*", re.IGNORECASE)
INSTRUCTIONS_HEADING = re.compile(r"\*\*(?:Instructions|निर्देश):\*\*", re.IGNORECASE)
NUTRITION_HEADING = re.compile(
    r"\*\*(?:Approximate Nutritional Value|अनुमानित पोषण मूल्य)[^*\n]*\*\*",
    re.IGNORECASE,
)
APPROXIMATE_HEADING = re.compile(r"\*\*(?:Approximate|अनुमानित)", re.IGNORECASE)
BOLD_LINE = re.compile(r"^[ \t]*\*\*", re.MULTILINE)

NUMBERED_LINE = re.compile(r"^(\d+)\.\s*(.*)$")
BULLET_PREFIX = re.compile(r"^\*\s*")


@dataclass(frozen=True)
class SectionRule:
    name: str
    heading: Pattern[str]
    terminator: Optional[Pattern[str]]
    keep: Callable[[str], bool]
    transform: Callable[[str], Any]


def _is_bullet(line: str) -> bool:
    # "**Heading**" lines are bold text, not bullets
    return line.startswith("*") and not line.startswith("**")


def _strip_bullet(line: str) -> str:
    return BULLET_PREFIX.sub("", line).strip()


def _is_numbered(line: str) -> bool:
    return NUMBERED_LINE.match(line) is not None


def _strip_number(line: str) -> str:
    return NUMBERED_LINE.match(line).group(2).strip()


def _nutrition_fact(line: str) -> Optional[NutritionFact]:
    label, sep, value = _strip_bullet(line).partition(":")
    if not sep:
        return None
    label = label.strip(" *")
    value = value.strip(" *")
    if not label or not value:
        return None
    return NutritionFact(label=label, value=value)


SECTION_RULES = (
    SectionRule(
        name="ingredients",
        heading=INGREDIENTS_HEADING,
        terminator=re.compile(
            f"{INSTRUCTIONS_HEADING.pattern}|{APPROXIMATE_HEADING.pattern}",
            re.IGNORECASE,
        ),
        keep=_is_bullet,
        transform=_strip_bullet,
    ),
    SectionRule(
        name="instructions",
        heading=INSTRUCTIONS_HEADING,
        terminator=APPROXIMATE_HEADING,
        keep=_is_numbered,
        transform=_strip_number,
    ),
    SectionRule(
        name="nutrition",
        heading=NUTRITION_HEADING,
        terminator=BOLD_LINE,
        keep=_is_bullet,
        transform=_nutrition_fact,
    ),
)

_RULES_BY_NAME = {rule.name: rule for rule in SECTION_RULES}


def section_block(text: str, rule: SectionRule) -> Optional[str]:
    """Return the text between the rule's heading and its terminator, if any."""
    match = rule.heading.search(text or "")
    if not match:
        return None
    rest = text[match.end():]
    end = rule.terminator.search(rest) if rule.terminator else None
    return rest[: end.start()] if end else rest


def extract_section(text: str, name: str) -> List[Any]:
    rule = _RULES_BY_NAME[name]
    block = section_block(text, rule)
    if block is None:
        return []

    items = []
    for line in block.splitlines():
        line = line.strip()
        if not line or not rule.keep(line):
            continue
        value = rule.transform(line)
        if value is not None and value != "":
            items.append(value)
    return items


def extract_title(text: str, language: LanguageCode) -> str:
    pattern = TITLE_PATTERNS[LanguageCode(language)]
    for line in (text or "").splitlines():
        line = line.strip()
        if not line or "translation" in line.lower():
            continue
        match = pattern.match(line)
        if match:
            return match.group(1).strip()
    return UNTITLED


def extract_ingredients(text: str) -> List[str]:
    return extract_section(text, "ingredients")


def extract_instruction_lines(text: str) -> List[str]:
    return extract_section(text, "instructions")


def extract_nutrition(text: str) -> List[NutritionFact]:
    return extract_section(text, "nutrition")
