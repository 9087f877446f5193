"""
Persistence of cooking progress behind an injected key-value store.

Progress lives in two slots that are always written together:

* ``cookingProgress`` holds the most recently active session, used to
  pick up where the user left off after a reload.
* ``cookingProgress_<recipe key>`` archives the latest record of every
  recipe the user has cooked, used for cook history.

A third slot, ``cookingLang``, remembers the last language the user chose.
"""

import copy
import logging
import re
import threading
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from ..models.recipe import LanguageCode
from ..models.session import CookingProgress

log = logging.getLogger(__name__)

CURRENT_SLOT = "cookingProgress"
ARCHIVE_PREFIX = "cookingProgress_"
LANGUAGE_SLOT = "cookingLang"

Record = Dict[str, Any]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Record]:
        ...

    def set(self, key: str, record: Record) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store; records are copied in and out."""

    def __init__(self) -> None:
        self._data: Dict[str, Record] = {}

    def get(self, key: str) -> Optional[Record]:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, record: Record) -> None:
        self._data[key] = copy.deepcopy(record)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def recipe_key(title: str) -> str:
    """Archive key for a recipe; recipes sharing a title share a key."""
    return re.sub(r"\s+", "_", (title or "").strip())


def archive_slot(key: str) -> str:
    return f"{ARCHIVE_PREFIX}{key}"


class ProgressRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def save(self, progress: CookingProgress) -> None:
        """
        Write ``progress`` to its archive slot and the current slot.

        If the current-slot write fails the archive slot is put back the
        way it was before the error is re-raised.
        """
        record = progress.model_dump(mode="json")
        slot = archive_slot(progress.recipe_key)
        with self._lock:
            previous = self.store.get(slot)
            self.store.set(slot, record)
            try:
                self.store.set(CURRENT_SLOT, record)
            except Exception:
                self._restore(slot, previous)
                raise
        log.debug(
            "Saved progress for %s at step %d (completed=%s)",
            progress.recipe_key,
            progress.current_step_index,
            progress.completed,
        )

    def _restore(self, slot: str, previous: Optional[Record]) -> None:
        try:
            if previous is None:
                self.store.delete(slot)
            else:
                self.store.set(slot, previous)
        except Exception:
            log.exception("Could not roll back %s", slot)

    def load_current(self) -> Optional[CookingProgress]:
        return self._load(CURRENT_SLOT)

    def load_archive(self, key: str) -> Optional[CookingProgress]:
        return self._load(archive_slot(key))

    def _load(self, slot: str) -> Optional[CookingProgress]:
        with self._lock:
            try:
                record = self.store.get(slot)
            except (OSError, ValueError) as exc:
                log.warning("Could not read %s: %s", slot, exc)
                return None
        if record is None:
            return None
        try:
            return CookingProgress.model_validate(record)
        except ValidationError as exc:
            log.warning("Ignoring corrupt progress record in %s: %s", slot, exc)
            return None

    def language_preference(self) -> Optional[LanguageCode]:
        try:
            record = self.store.get(LANGUAGE_SLOT)
        except (OSError, ValueError) as exc:
            log.warning("Could not read %s: %s", LANGUAGE_SLOT, exc)
            return None
        if not isinstance(record, dict):
            return None
        try:
            return LanguageCode(record.get("language"))
        except ValueError:
            return None

    def set_language_preference(self, language: LanguageCode) -> None:
        self.store.set(LANGUAGE_SLOT, {"language": LanguageCode(language).value})
