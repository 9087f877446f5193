import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.websockets import WebSocketState

from ..core.config import get_settings
from ..core.progress_store import recipe_key
from ..core.state_machine import CookingSession, Intent
from ..core.timer_manager import StepTimer, format_remaining
from ..models.recipe import LanguageCode, RecipeDocument
from ..services.history_client import RecipeHistoryClient
from .dependencies import get_history_client, get_session, get_timer
from .routes import snapshot

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


def classify_intent(text: str) -> Intent:
    """Simple keyword-based intent classification for English and Hindi cooking commands"""
    text = text.lower().strip()

    if any(keyword in text for keyword in ["stop timer", "cancel timer", "टाइमर बंद"]):
        return Intent.STOP_TIMER

    if any(keyword in text for keyword in ["timer", "टाइमर"]):
        return Intent.TIMER

    # Checked before repeat so "cook again" is not read as "again"
    if any(keyword in text for keyword in ["restart", "start over", "cook again", "recook", "फिर से बनाओ"]):
        return Intent.RESTART

    if any(keyword in text for keyword in ["previous", "back", "prev", "पिछला"]):
        return Intent.PREVIOUS

    if any(keyword in text for keyword in ["next", "continue", "अगला", "आगे"]):
        return Intent.NEXT

    if any(keyword in text for keyword in ["done", "finish", "complete", "हो गया"]):
        return Intent.COMPLETE

    if any(keyword in text for keyword in ["hindi", "english", "language", "हिंदी", "अंग्रेज़ी"]):
        return Intent.SWITCH_LANGUAGE

    if any(keyword in text for keyword in ["repeat", "again", "current", "दोहराओ"]):
        return Intent.REPEAT

    return Intent.UNKNOWN


def requested_language(text: str) -> Optional[LanguageCode]:
    text = text.lower()
    if "hindi" in text or "हिंदी" in text:
        return LanguageCode.HI
    if "english" in text or "अंग्रेज़ी" in text:
        return LanguageCode.EN
    return None


@router.websocket("/ws")
async def cooking_websocket(
    ws: WebSocket,
    session: CookingSession = Depends(get_session),
    timer: StepTimer = Depends(get_timer),
    history_client: RecipeHistoryClient = Depends(get_history_client),
):
    await ws.accept()
    log.info("Cooking WebSocket connected")

    async def send(message: dict):
        if ws.application_state == WebSocketState.CONNECTED:
            await ws.send_json(message)
        else:
            log.warning("WebSocket not connected, %s message dropped", message.get("type"))

    async def send_step(changed: bool = True):
        await send({"type": "step", "changed": changed, **snapshot(session).model_dump(mode="json")})

    async def on_tick(remaining: int):
        await send({"type": "tick", "remaining": remaining, "display": format_remaining(remaining)})

    async def on_expire():
        await send({"type": "expired"})

    try:
        # Client opens with {"recipe": {...}, "language": "en", "resume": false}
        opening = await ws.receive_json()
        try:
            document = RecipeDocument.model_validate(opening.get("recipe") or {})
            language = opening.get("language")
            if language is not None:
                language = LanguageCode(language)
        except (ValidationError, ValueError) as e:
            await send({"type": "error", "message": f"Invalid recipe: {e}"})
            await ws.close()
            return

        default_language = get_settings().default_language
        if opening.get("resume"):
            session.resume(recipe_key(document.title), document, language, default_language)
        else:
            session.start(document, language or default_language)
        log.info(f"Cooking {session.progress.recipe_key} with {len(session.steps)} steps")
        await send_step()
        if not opening.get("resume"):
            await run_in_threadpool(history_client.record_start, document, session.progress.language)

        while True:
            text = await ws.receive_text()
            intent = classify_intent(text)
            log.info(f"Classified intent: {intent} for text: '{text.strip()}'")

            if intent == Intent.REPEAT:
                await send_step(changed=False)

            elif intent == Intent.TIMER:
                step = session.current_step
                if step is None or step.duration_minutes is None:
                    await send({"type": "info", "message": "This step has no timer."})
                else:
                    timer.start(step.duration_minutes, on_tick, on_expire)
                    await send({"type": "timer_started", **timer.state.model_dump()})

            elif intent == Intent.STOP_TIMER:
                await send({"type": "timer_stopped", "stopped": timer.stop()})

            elif intent == Intent.SWITCH_LANGUAGE and requested_language(text) is not None:
                changed = await run_in_threadpool(session.choose_language, requested_language(text))
                await send_step(changed=changed)

            elif intent == Intent.UNKNOWN:
                session.handle(intent)
                await send({
                    "type": "error",
                    "message": "Sorry, I didn't understand that. Try 'next', 'back', 'repeat', 'timer' or 'restart'.",
                })

            else:
                # store writes block, keep them off the event loop
                changed = await run_in_threadpool(session.handle, intent)
                await send_step(changed=changed)
                # history service calls go out only after the step has been sent
                for event in session.drain_events():
                    await run_in_threadpool(history_client.record_completion, event)
                if changed and intent == Intent.RESTART:
                    await run_in_threadpool(history_client.record_restart, session.progress.recipe_id)

    except WebSocketDisconnect:
        log.info("Cooking WebSocket disconnected")
    except Exception as e:
        log.exception("Cooking WebSocket error")
        await send({"type": "error", "message": f"Server error: {e}"})
        await ws.close()
    finally:
        timer.stop()
