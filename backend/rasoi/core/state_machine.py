import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Union

from ..models.recipe import LanguageCode, RecipeDocument, Step
from ..models.session import CompletionEvent, CookingProgress, SessionState
from ..services.recipe_parser import parse_recipe
from .progress_store import KeyValueStore, ProgressRepository, recipe_key

log = logging.getLogger(__name__)

Notifier = Callable[[CompletionEvent], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Intent(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"
    REPEAT = "repeat"
    RESTART = "restart"
    COMPLETE = "complete"
    SWITCH_LANGUAGE = "switch_language"
    TIMER = "timer"
    STOP_TIMER = "stop_timer"
    UNKNOWN = "unknown"


class CookingSession:
    """
    Resumable walk through the steps of one recipe.

    Steps are re-parsed from the record's raw content in the record's
    language whenever they are needed. A mutating transition works on a
    copy of the record: it stamps ``last_active_at``, writes the copy to
    both the current session slot and the recipe's archive slot, and only
    then makes it the live record. If the write fails the error is logged,
    the session is left as it was and the transition returns False.

    Completion events are handed to ``notifier`` after the write, outside
    the lock. The notifier should only queue the event; forwarding it over
    the network is the caller's job. Without a notifier, events wait in the
    session until ``drain_events()`` collects them.
    """

    def __init__(
        self,
        store: Union[KeyValueStore, ProgressRepository],
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if isinstance(store, ProgressRepository):
            self.repository = store
        else:
            self.repository = ProgressRepository(store)
        self.notify = notifier
        self.clock = clock or _utcnow
        self.progress: Optional[CookingProgress] = None
        self.suggested_language: Optional[LanguageCode] = None
        self._awaiting_language = False
        self._pending: List[CompletionEvent] = []

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self.progress is None:
            return SessionState.NOT_STARTED
        if self._awaiting_language:
            return SessionState.AWAITING_LANGUAGE_CHOICE
        if self.progress.completed:
            return SessionState.COMPLETED
        return SessionState.IN_PROGRESS

    @property
    def language(self) -> Optional[LanguageCode]:
        return self.progress.language if self.progress else None

    @property
    def steps(self) -> List[Step]:
        if self.progress is None:
            return []
        return _steps_of(self.progress)

    @property
    def last_index(self) -> int:
        return max(len(self.steps) - 1, 0)

    @property
    def current_step(self) -> Optional[Step]:
        steps = self.steps
        if self.progress is None or not steps:
            return None
        return steps[min(self.progress.current_step_index, len(steps) - 1)]

    @property
    def is_first_step(self) -> bool:
        return self.progress is not None and self.progress.current_step_index == 0

    @property
    def is_last_step(self) -> bool:
        steps = self.steps
        return bool(steps) and self.progress.current_step_index == len(steps) - 1

    @property
    def progress_fraction(self) -> float:
        steps = self.steps
        if not steps:
            return 0.0
        return (self.progress.current_step_index + 1) / len(steps)

    def _active(self) -> bool:
        return self.state in (SessionState.IN_PROGRESS, SessionState.COMPLETED)

    def drain_events(self) -> List[CompletionEvent]:
        """Hand over the completion events queued since the last call."""
        with self.repository.lock:
            events, self._pending = self._pending, []
        return events

    # -- transitions -------------------------------------------------------

    def start(self, document: RecipeDocument, language: LanguageCode = LanguageCode.EN) -> CookingProgress:
        """Begin ``document`` at step 0. Write failures propagate."""
        if document is None:
            raise ValueError("start() needs a recipe document")
        language = LanguageCode(language)

        with self.repository.lock:
            progress = CookingProgress(
                recipe_key=recipe_key(document.title),
                recipe_id=document.id,
                title=document.title,
                raw_content=document.raw_content,
                current_step_index=0,
                language=language,
                last_active_at=self.clock(),
                completed=False,
            )
            self.repository.save(progress)
            self.progress = progress
            self._awaiting_language = False
            self.suggested_language = None
            self._remember_language(language)
        log.info("Started cooking %s in %s", progress.recipe_key, language.value)
        return progress

    def advance(self) -> bool:
        event = None
        with self.repository.lock:
            if not self._active() or self.progress.current_step_index >= self.last_index:
                return False
            draft = self.progress.model_copy()
            draft.current_step_index += 1
            if draft.current_step_index == self.last_index and not draft.completed:
                event = _complete(draft)
            if not self._commit(draft):
                return False
        self._emit(event)
        return True

    def retreat(self) -> bool:
        with self.repository.lock:
            if not self._active() or self.progress.current_step_index <= 0:
                return False
            draft = self.progress.model_copy()
            draft.current_step_index -= 1
            return self._commit(draft)

    def reach_last_step(self) -> bool:
        with self.repository.lock:
            if self.state is not SessionState.IN_PROGRESS or not self.is_last_step:
                return False
            draft = self.progress.model_copy()
            event = _complete(draft)
            if not self._commit(draft):
                return False
        self._emit(event)
        return True

    def mark_complete(self) -> bool:
        """Complete the session at whatever step it is on."""
        with self.repository.lock:
            if self.state is not SessionState.IN_PROGRESS:
                return False
            draft = self.progress.model_copy()
            event = _complete(draft)
            if not self._commit(draft):
                return False
        self._emit(event)
        return True

    def restart(self) -> bool:
        with self.repository.lock:
            if not self._active():
                return False
            draft = self.progress.model_copy()
            draft.current_step_index = 0
            draft.completed = False
            if not self._commit(draft):
                return False
        log.info("Restarted %s", draft.recipe_key)
        return True

    def resume(
        self,
        key: str,
        document: Optional[RecipeDocument] = None,
        language: Optional[LanguageCode] = None,
        default_language: LanguageCode = LanguageCode.EN,
    ) -> bool:
        """
        Re-enter the archived session for ``key``.

        Falls back to ``start`` (in ``language``, else ``default_language``)
        when nothing usable is archived and a document was given; without a
        document the session stays where it was and False is returned.
        When no language is requested and the archived language differs
        from the user's language preference, the session waits in
        AWAITING_LANGUAGE_CHOICE until ``choose_language`` is called.
        """
        if language is not None:
            language = LanguageCode(language)

        with self.repository.lock:
            saved = self.repository.load_archive(key)
            if saved is None:
                if document is None:
                    log.info("No saved progress for %s", key)
                    return False
                log.info("No saved progress for %s; starting fresh", key)
                self.start(document, language or default_language)
                return True

            if document is not None:
                saved.raw_content = document.raw_content
                saved.recipe_id = document.id or saved.recipe_id

            if language is None:
                preferred = self.repository.language_preference()
                if preferred is not None and preferred is not saved.language:
                    self.progress = saved
                    self._awaiting_language = True
                    self.suggested_language = saved.language
                    log.info(
                        "Resuming %s: saved in %s but preference is %s, asking",
                        key,
                        saved.language.value,
                        preferred.value,
                    )
                    return True
            else:
                _set_language(saved, language)

            _clamp(saved)
            if not self._commit(saved):
                return False
            self._awaiting_language = False
            self.suggested_language = None
        log.info(
            "Resumed %s at step %d (%s)",
            key,
            self.progress.current_step_index,
            self.state.value,
        )
        return True

    def resume_current(self) -> bool:
        """Restore whatever session was active before a reload."""
        with self.repository.lock:
            current = self.repository.load_current()
            if current is None:
                return False
            restored = self.repository.load_archive(current.recipe_key) or current
            _clamp(restored)
            self.progress = restored
            self.suggested_language = None
            self._awaiting_language = False
        return True

    def choose_language(self, language: LanguageCode) -> bool:
        language = LanguageCode(language)
        with self.repository.lock:
            if self.state is not SessionState.AWAITING_LANGUAGE_CHOICE:
                return self.switch_language(language)
            draft = self.progress.model_copy()
            _set_language(draft, language)
            if not self._commit(draft):
                return False
            self._awaiting_language = False
            self.suggested_language = None
            self._remember_language(language)
        return True

    def switch_language(self, language: LanguageCode) -> bool:
        language = LanguageCode(language)
        with self.repository.lock:
            if not self._active() or self.progress.language is language:
                return False
            draft = self.progress.model_copy()
            _set_language(draft, language)
            if not self._commit(draft):
                return False
            self._remember_language(language)
        log.info("Switched %s to %s", draft.recipe_key, language.value)
        return True

    def abandon(self) -> None:
        """Drop the live session; persisted slots are left for resume."""
        with self.repository.lock:
            self.progress = None
            self.suggested_language = None
            self._awaiting_language = False

    def handle(self, intent: Intent) -> bool:
        if intent == Intent.NEXT:
            return self.advance()
        if intent == Intent.PREVIOUS:
            return self.retreat()
        if intent == Intent.RESTART:
            return self.restart()
        if intent == Intent.COMPLETE:
            return self.mark_complete()
        if intent == Intent.SWITCH_LANGUAGE:
            if self.progress is None:
                return False
            other = LanguageCode.HI if self.progress.language is LanguageCode.EN else LanguageCode.EN
            return self.switch_language(other)
        if intent == Intent.UNKNOWN:
            log.warning("Unknown intent")
        return False

    # -- internals ---------------------------------------------------------

    def _commit(self, draft: CookingProgress) -> bool:
        draft.last_active_at = self.clock()
        try:
            self.repository.save(draft)
        except (OSError, ValueError) as exc:
            log.error("Could not save progress for %s: %s", draft.recipe_key, exc)
            return False
        self.progress = draft
        return True

    def _remember_language(self, language: LanguageCode) -> None:
        try:
            self.repository.set_language_preference(language)
        except (OSError, ValueError) as exc:
            log.warning("Could not store language preference: %s", exc)

    def _emit(self, event: Optional[CompletionEvent]) -> None:
        if event is None:
            return
        log.info("Completed recipe %s at step %d", event.recipe_id, event.current_step_index)
        if self.notify is not None:
            self.notify(event)
            return
        with self.repository.lock:
            self._pending.append(event)


def _steps_of(progress: CookingProgress) -> List[Step]:
    return parse_recipe(progress.raw_content, progress.language).steps


def _clamp(progress: CookingProgress) -> None:
    last = max(len(_steps_of(progress)) - 1, 0)
    progress.current_step_index = max(0, min(progress.current_step_index, last))


def _set_language(progress: CookingProgress, language: LanguageCode) -> None:
    # step lists differ per language; keep the index, clamped to the new list
    progress.language = language
    _clamp(progress)


def _complete(progress: CookingProgress) -> CompletionEvent:
    progress.completed = True
    return CompletionEvent(
        recipe_id=progress.recipe_id,
        completed=True,
        current_step_index=progress.current_step_index,
    )
