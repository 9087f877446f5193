"""
Regex-driven parsing of bilingual LLM recipe text into a ParsedRecipe.
"""

import logging
from typing import Union

from ..models.recipe import LanguageCode, ParsedRecipe
from .bilingual import variant
from .sections import (
    extract_ingredients,
    extract_instruction_lines,
    extract_nutrition,
    extract_title,
)
from .steps import build_steps

log = logging.getLogger(__name__)


class RecipeParser:
    @classmethod
    def parse(cls, raw: str, language: Union[LanguageCode, str] = LanguageCode.EN) -> ParsedRecipe:
        language = LanguageCode(language)
        text = variant(raw, language)

        recipe = ParsedRecipe(
            title=extract_title(text, language),
            ingredients=extract_ingredients(text),
            steps=build_steps(extract_instruction_lines(text)),
            nutrition=extract_nutrition(text),
        )
        log.debug(
            "Parsed %s recipe %r: %d ingredients, %d steps",
            language.value,
            recipe.title,
            len(recipe.ingredients),
            len(recipe.steps),
        )
        return recipe


def parse_recipe(raw_content: str, language: Union[LanguageCode, str]) -> ParsedRecipe:
    return RecipeParser.parse(raw_content, language)
