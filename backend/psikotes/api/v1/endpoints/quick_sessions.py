import json
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ... import deps
from ....core.cache import CacheManager
from ....core.config import settings
from ....schemas.quick_session import (
    GenerateQuestionsRequest, GenerateQuestionsResponse, QuickSessionRecord, QuickSessionPatch, QuickSessionView,
    SessionConfig
)
from ....services.session_store import QuickSessionStore
from ....utils.gemini_service import GenerationParams, GenerationUnavailableError
from ....utils.timezone import epoch_millis

logger = logging.getLogger(__name__)

router = APIRouter()


def question_cache_key(config: SessionConfig) -> str:
    return "questions:" + json.dumps([config.user_type, config.category, config.difficulty, config.count])


def _view(record: QuickSessionRecord) -> dict:
    return {
        "session_id": record.session_id,
        "questions": record.questions,
        "progress": {
            "answers": record.answers,
            "current_index": record.current_index,
            "completed": record.completed,
        },
        "config": record.config,
        "started_at": record.started_at,
        "updated_at": record.updated_at,
    }


def _response(record: QuickSessionRecord, source: str) -> dict:
    return {**_view(record), "source": source}


@router.post("/generate-questions", response_model=GenerateQuestionsResponse)
async def generate_questions(
    payload: GenerateQuestionsRequest,
    store: QuickSessionStore = Depends(deps.get_quick_session_store),
    question_cache: CacheManager = Depends(deps.get_question_cache),
    generator=Depends(deps.get_question_generator)
):
    if payload.session_id:
        existing = await store.get(payload.session_id)
        if existing is not None:
            return _response(existing, "resume")

    config = SessionConfig(
        user_type=payload.user_type,
        category=payload.category,
        difficulty=payload.difficulty,
        count=payload.count,
        custom_time_seconds=payload.custom_time_seconds,
    )
    cache_key = question_cache_key(config)

    questions = await question_cache.aget(cache_key)
    source = "cache"
    if not questions:
        source = "fresh"
        try:
            questions = await generator.generate_questions(
                GenerationParams(
                    user_type=config.user_type,
                    category=config.category,
                    difficulty=config.difficulty,
                    count=config.count,
                )
            )
        except GenerationUnavailableError as e:
            logger.error(f"Question generation unavailable: {e} (cause: {e.cause})")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
        await question_cache.aset(cache_key, questions, ttl=settings.question_cache_ttl)

    now = epoch_millis()
    record = QuickSessionRecord(
        session_id=str(uuid.uuid4()),
        questions=questions,
        answers={},
        current_index=0,
        completed=False,
        config=config,
        started_at=now,
        updated_at=now,
    )
    await store.set(record)
    return _response(record, source)


@router.get("/session", response_model=List[QuickSessionView])
async def list_sessions(store: QuickSessionStore = Depends(deps.get_quick_session_store)):
    return [_view(record) for record in await store.list()]


@router.get("/session/{session_id}", response_model=QuickSessionView)
async def get_session(session_id: str, store: QuickSessionStore = Depends(deps.get_quick_session_store)):
    record = await store.get(session_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sesi tidak ditemukan.")
    return _view(record)


@router.patch("/session/{session_id}", response_model=QuickSessionView)
async def update_session(
    session_id: str,
    payload: QuickSessionPatch,
    store: QuickSessionStore = Depends(deps.get_quick_session_store)
):
    def apply(current: QuickSessionRecord) -> QuickSessionRecord:
        changes = payload.model_dump(exclude_none=True)
        if payload.answers is not None:
            changes["answers"] = payload.answers
        changes["updated_at"] = epoch_millis()
        return current.model_copy(update=changes)

    record = await store.update(session_id, apply)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sesi tidak ditemukan.")
    return _view(record)


@router.delete("/session/{session_id}")
async def delete_session(session_id: str, store: QuickSessionStore = Depends(deps.get_quick_session_store)):
    if not await store.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sesi tidak ditemukan.")
    return {"success": True}
