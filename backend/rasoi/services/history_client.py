"""
Client for the remote recipe-history service.

A fresh start is registered with ``POST /api/recipe/cooked``. Completion
events raised by a cooking session, and "cook again" resets, are forwarded
as ``PATCH /api/recipe/cooked/<recipe id>`` calls. Only PATCH is retried.
Failures are logged and reported as False; they never reach the session.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..core.config import Settings, get_settings
from ..models.recipe import LanguageCode, RecipeDocument
from ..models.session import CompletionEvent

log = logging.getLogger(__name__)


class RecipeHistoryClient:
    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.history_service_url.rstrip("/")
        self.session = session or requests.Session()
        retry = Retry(
            total=self.settings.history_request_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["PATCH"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _get_headers(self):
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.settings.history_service_token:
            headers["Authorization"] = f"Bearer {self.settings.history_service_token}"
        return headers

    def _send(self, method: str, path: str, payload: dict) -> bool:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._get_headers(),
                timeout=self.settings.history_request_timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            log.error(f"Cook history {method} {path} failed: {e}")
            return False
        log.info(f"Cook history {method} {path}: {payload}")
        return True

    def _patch(self, recipe_id: Optional[str], payload: dict) -> bool:
        if not self.enabled:
            log.debug("History service not configured; dropping update for %s", recipe_id)
            return False
        if not recipe_id:
            log.warning("Cannot update cook history without a recipe id")
            return False
        return self._send("PATCH", f"/api/recipe/cooked/{recipe_id}", payload)

    def record_start(self, document: RecipeDocument, language: LanguageCode) -> bool:
        """Register a freshly started cook with the history service."""
        if not self.enabled:
            log.debug("History service not configured; dropping start of %s", document.title)
            return False
        return self._send(
            "POST",
            "/api/recipe/cooked",
            {
                "title": document.title,
                "content": document.raw_content,
                "language": LanguageCode(language).value,
            },
        )

    def record_completion(self, event: CompletionEvent) -> bool:
        return self._patch(
            event.recipe_id,
            {"completed": event.completed, "currentStep": event.current_step_index},
        )

    def record_restart(self, recipe_id: Optional[str]) -> bool:
        return self._patch(recipe_id, {"completed": False, "currentStep": 0})
