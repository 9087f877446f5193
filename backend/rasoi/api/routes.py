import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel

from ..core.config import get_settings
from ..core.progress_store import recipe_key
from ..core.state_machine import CookingSession
from ..models.recipe import (
    BilingualContent,
    LanguageCode,
    ParsedRecipe,
    RecipeDocument,
    Step,
)
from ..models.session import CookingProgress, HistoryEntry, SessionState
from ..services.bilingual import display_text, split
from ..services.cook_history import history
from ..services.history_client import RecipeHistoryClient
from ..services.recipe_parser import parse_recipe
from .dependencies import get_history_client, get_session

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


class ParseRequest(BaseModel):
    raw_content: str
    language: LanguageCode = LanguageCode.EN


class SplitRequest(BaseModel):
    raw_content: str
    language: Optional[LanguageCode] = None


class SplitResponse(BilingualContent):
    display: str


class StartRequest(BaseModel):
    recipe: RecipeDocument
    language: Optional[LanguageCode] = None


class ResumeRequest(BaseModel):
    recipe_key: Optional[str] = None
    recipe: Optional[RecipeDocument] = None
    language: Optional[LanguageCode] = None


class LanguageRequest(BaseModel):
    language: LanguageCode


class HistoryRequest(BaseModel):
    recipes: List[RecipeDocument]
    language: Optional[LanguageCode] = None


class SessionSnapshot(BaseModel):
    state: SessionState
    progress: Optional[CookingProgress] = None
    current_step: Optional[Step] = None
    total_steps: int = 0
    is_first_step: bool = False
    is_last_step: bool = False
    progress_fraction: float = 0.0
    suggested_language: Optional[LanguageCode] = None


def snapshot(session: CookingSession) -> SessionSnapshot:
    return SessionSnapshot(
        state=session.state,
        progress=session.progress,
        current_step=session.current_step,
        total_steps=len(session.steps),
        is_first_step=session.is_first_step,
        is_last_step=session.is_last_step,
        progress_fraction=session.progress_fraction,
        suggested_language=session.suggested_language,
    )


def _live(session: CookingSession) -> CookingSession:
    if session.progress is None and not session.resume_current():
        raise HTTPException(status.HTTP_409_CONFLICT, detail="No cooking session in progress")
    return session


def _forward_completions(
    session: CookingSession,
    history_client: RecipeHistoryClient,
    background_tasks: BackgroundTasks,
) -> None:
    for event in session.drain_events():
        background_tasks.add_task(history_client.record_completion, event)


@router.post("/recipes/parse", response_model=ParsedRecipe)
def parse(body: ParseRequest):
    return parse_recipe(body.raw_content, body.language)


@router.post("/recipes/split", response_model=SplitResponse)
def split_languages(body: SplitRequest):
    parts = split(body.raw_content)
    language = body.language or get_settings().default_language
    return SplitResponse(en=parts.en, hi=parts.hi, display=display_text(body.raw_content, language))


@router.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
def start_session(
    body: StartRequest,
    background_tasks: BackgroundTasks,
    session: CookingSession = Depends(get_session),
    history_client: RecipeHistoryClient = Depends(get_history_client),
):
    progress = session.start(body.recipe, body.language or get_settings().default_language)
    background_tasks.add_task(history_client.record_start, body.recipe, progress.language)
    return snapshot(session)


@router.get("/sessions/current", response_model=SessionSnapshot)
def current_session(session: CookingSession = Depends(get_session)):
    if session.progress is None and not session.resume_current():
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="No cooking session saved")
    return snapshot(session)


@router.post("/sessions/resume", response_model=SessionSnapshot)
def resume_session(body: ResumeRequest, session: CookingSession = Depends(get_session)):
    if body.recipe_key:
        key = body.recipe_key
    elif body.recipe is not None:
        key = recipe_key(body.recipe.title)
    else:
        raise HTTPException(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Either recipe_key or recipe is required",
        )
    if not session.resume(key, body.recipe, body.language, get_settings().default_language):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"No saved progress for {key}")
    return snapshot(session)


@router.post("/sessions/current/advance", response_model=SessionSnapshot)
def advance(
    background_tasks: BackgroundTasks,
    session: CookingSession = Depends(get_session),
    history_client: RecipeHistoryClient = Depends(get_history_client),
):
    _live(session).advance()
    _forward_completions(session, history_client, background_tasks)
    return snapshot(session)


@router.post("/sessions/current/retreat", response_model=SessionSnapshot)
def retreat(session: CookingSession = Depends(get_session)):
    _live(session).retreat()
    return snapshot(session)


@router.post("/sessions/current/complete", response_model=SessionSnapshot)
def complete(
    background_tasks: BackgroundTasks,
    session: CookingSession = Depends(get_session),
    history_client: RecipeHistoryClient = Depends(get_history_client),
):
    _live(session).mark_complete()
    _forward_completions(session, history_client, background_tasks)
    return snapshot(session)


@router.post("/sessions/current/restart", response_model=SessionSnapshot)
def restart(
    background_tasks: BackgroundTasks,
    session: CookingSession = Depends(get_session),
    history_client: RecipeHistoryClient = Depends(get_history_client),
):
    if _live(session).restart():
        background_tasks.add_task(history_client.record_restart, session.progress.recipe_id)
    return snapshot(session)


@router.post("/sessions/current/language", response_model=SessionSnapshot)
def choose_language(body: LanguageRequest, session: CookingSession = Depends(get_session)):
    _live(session).choose_language(body.language)
    return snapshot(session)


@router.post("/history", response_model=List[HistoryEntry])
def cook_history(body: HistoryRequest, session: CookingSession = Depends(get_session)):
    return history(session.repository, body.recipes, body.language)
