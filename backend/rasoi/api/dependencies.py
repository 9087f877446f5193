from functools import lru_cache

from ..core.config import get_settings
from ..core.state_machine import CookingSession
from ..core.timer_manager import StepTimer, get_step_timer
from ..services.file_store import JsonFileStore
from ..services.history_client import RecipeHistoryClient


@lru_cache()
def get_history_client() -> RecipeHistoryClient:
    return RecipeHistoryClient(get_settings())


@lru_cache()
def get_session() -> CookingSession:
    """The single live cooking session of this process; completions queue until drained."""
    settings = get_settings()
    return CookingSession(JsonFileStore(settings.storage_dir))


def get_timer() -> StepTimer:
    return get_step_timer()
