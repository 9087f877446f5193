from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, conint


class LanguageCode(str, Enum):
    EN = "en"
    HI = "hi"


class RecipeDocument(BaseModel):
    """Recipe as handed over by the backend; raw_content is the source of truth."""

    id: Optional[str] = None
    title: str
    raw_content: str


class Step(BaseModel):
    index: conint(ge=0)
    text: str
    duration_minutes: Optional[conint(gt=0)] = None


class NutritionFact(BaseModel):
    label: str
    value: str


class BilingualContent(BaseModel):
    en: str = ""
    hi: str = ""


class ParsedRecipe(BaseModel):
    title: str
    ingredients: List[str] = []
    steps: List[Step] = []
    nutrition: List[NutritionFact] = []
