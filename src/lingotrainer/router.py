import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .config import settings
from .globals import get_controller, get_vocab_manager
from .models import ScoreBreakdown, SessionStats, SessionSummary
from .scoring import difficulty_label, speed_label
from .session import SessionController
from .vocabulary import VocabularyManager

logger = logging.getLogger("lingotrainer.router")

router = APIRouter(prefix="/api")


# --- Request bodies ---
class StartRequest(BaseModel):
    topic: str
    size: Optional[int] = Field(None, ge=1)
    evaluated_only: bool = True


class RespondRequest(BaseModel):
    is_known: bool
    response_time_ms: float


# --- Helpers ---
def session_snapshot(controller: SessionController) -> Dict[str, Any]:
    session = controller.session
    word = controller.get_current_word()
    progress = controller.get_word_progress(word.id) if word else None
    breakdown = controller.last_breakdown
    return {
        "session_id": session.id if session else None,
        "state": controller.state.value,
        "current_index": session.current_index if session else 0,
        "total_words": len(session.deck) if session else 0,
        "progress": controller.get_progress(),
        "word": word.model_dump() if word else None,
        "word_score": progress.internal_score if progress else None,
        "has_next_word": controller.has_next_word,
        "has_previous_word": controller.has_previous_word,
        "can_rollback": controller.can_rollback,
        "stats": controller.get_stats().model_dump(),
        "last_breakdown": breakdown.model_dump() if breakdown else None,
    }


# --- Routes ---
@router.get("/topics")
async def get_topics(vocab: VocabularyManager = Depends(get_vocab_manager)):
    return vocab.get_topics()


@router.post("/session/start")
async def start_session(
    body: StartRequest,
    vocab: VocabularyManager = Depends(get_vocab_manager),
    controller: SessionController = Depends(get_controller),
):
    deck = vocab.get_deck(
        body.topic,
        body.size or settings.DECK_SIZE,
        body.evaluated_only,
        progress=controller.progress,
        now=controller.clock.now(),
        config=controller.config,
    )
    controller.start_session(deck)
    logger.info(f"New session: {controller.session.id} [Topic: {body.topic}]")
    return session_snapshot(controller)


@router.get("/session")
async def get_session(controller: SessionController = Depends(get_controller)):
    return session_snapshot(controller)


@router.post("/session/respond")
async def respond(
    body: RespondRequest,
    controller: SessionController = Depends(get_controller),
):
    breakdown: ScoreBreakdown = controller.respond(body.is_known, body.response_time_ms)
    result = breakdown.model_dump()
    result["new_level_label"] = difficulty_label(breakdown.new_level)
    result["speed_label"] = speed_label(breakdown.time_ratio)
    result["session"] = session_snapshot(controller)
    return result


@router.post("/session/skip")
async def skip(controller: SessionController = Depends(get_controller)):
    controller.skip()
    return session_snapshot(controller)


@router.post("/session/previous")
async def previous(controller: SessionController = Depends(get_controller)):
    controller.go_to_previous()
    return session_snapshot(controller)


@router.post("/session/rollback")
async def rollback(controller: SessionController = Depends(get_controller)):
    controller.rollback_response()
    return session_snapshot(controller)


@router.post("/session/pause")
async def pause(controller: SessionController = Depends(get_controller)):
    controller.pause_session()
    return session_snapshot(controller)


@router.post("/session/resume")
async def resume(controller: SessionController = Depends(get_controller)):
    controller.resume_session()
    return session_snapshot(controller)


@router.post("/session/end", response_model=SessionSummary)
async def end_session(controller: SessionController = Depends(get_controller)):
    return controller.end_session()


@router.get("/session/stats", response_model=SessionStats)
async def get_stats(controller: SessionController = Depends(get_controller)):
    return controller.get_stats()
