"""
Cook-history status for recipes, derived from archived progress.
"""

from typing import Iterable, List, Optional

from ..core.progress_store import ProgressRepository, recipe_key
from ..models.recipe import LanguageCode, RecipeDocument
from ..models.session import HistoryEntry, SessionState
from .recipe_parser import parse_recipe


def classify_status(
    repository: ProgressRepository,
    document: RecipeDocument,
    language: Optional[LanguageCode] = None,
) -> SessionState:
    return history_entry(repository, document, language).status


def history_entry(
    repository: ProgressRepository,
    document: RecipeDocument,
    language: Optional[LanguageCode] = None,
) -> HistoryEntry:
    key = recipe_key(document.title)
    progress = repository.load_archive(key)
    if language is not None:
        language = LanguageCode(language)
    elif progress is not None:
        language = progress.language
    else:
        language = LanguageCode.EN

    total_steps = len(parse_recipe(document.raw_content, language).steps)
    if progress is None:
        return HistoryEntry(
            recipe_key=key,
            title=document.title,
            status=SessionState.NOT_STARTED,
            total_steps=total_steps,
            language=language,
        )

    if progress.completed:
        status = SessionState.COMPLETED
    elif total_steps and progress.current_step_index >= total_steps - 1:
        status = SessionState.COMPLETED
    else:
        status = SessionState.IN_PROGRESS

    return HistoryEntry(
        recipe_key=key,
        title=document.title,
        status=status,
        current_step_index=progress.current_step_index,
        total_steps=total_steps,
        language=language,
        last_active_at=progress.last_active_at,
    )


def history(
    repository: ProgressRepository,
    documents: Iterable[RecipeDocument],
    language: Optional[LanguageCode] = None,
) -> List[HistoryEntry]:
    return [history_entry(repository, document, language) for document in documents]
