"""FastAPI server for kanatype."""

import asyncio
import logging
import os
import random

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.config import LEVEL_MASTERED
from core.corpus import get_corpus, get_sentence
from core.difficulty import calculate_sentence_difficulty
from core.interfaces import Storage
from core.kana import tokenize
from core.mastery import due_for_review
from core.models import Sentence
from core.selection import ScoredSentence
from core.romaji import canonical_romaji, match_romaji
from core.session import PracticeSession, SessionError
from core.utils import now_ms

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class TypeRequest(BaseModel):
    text: str
    elapsed_ms: int = 0


class MatchRequest(BaseModel):
    reading: str
    index: int = 0
    input: str


class MatchResponse(BaseModel):
    matched: bool
    consumed: int
    partial: bool


class TokenInfo(BaseModel):
    unit: str
    romanizations: list[str]
    source: Optional[str]
    is_doubling_marker: bool


class NextSentenceResponse(BaseModel):
    id: str
    surface: str
    reading: str
    tokens: list[TokenInfo]
    romaji: str
    difficulty: float
    jlpt: Optional[str]


class TypeResponse(BaseModel):
    index: int
    token_count: int
    buffer: str
    complete: bool
    had_errors: bool
    errors: int
    current_unit: Optional[str]


class HintResponse(BaseModel):
    unit: str
    romaji: str


class CompleteResponse(BaseModel):
    result: dict
    profile: dict
    difficulty_before: float
    day_streak: int


class StatusResponse(BaseModel):
    profile: dict
    tracked_units: int
    mastered_units: int
    due_count: int
    day_streak: int
    corpus_size: int
    last_session: Optional[dict]
    current_sentence: Optional[str]


# Global state (single learner per server)
storage: Storage = None
corpus: list[Sentence] = []
rng: random.Random = None
session: PracticeSession = None
session_lock = asyncio.Lock()


def configure(new_storage: Storage, new_corpus: list[Sentence] = None,
              new_rng: random.Random = None) -> None:
    """Wire collaborators explicitly (tests, embedding)."""
    global storage, corpus, rng, session, session_lock
    storage = new_storage
    corpus = new_corpus if new_corpus is not None else get_corpus()
    rng = new_rng or random.Random()
    session = PracticeSession(storage)
    session_lock = asyncio.Lock()


app = FastAPI(title="Kanatype API", description="Japanese kana typing practice API")


@app.on_event("startup")
async def startup():
    """Initialize storage and corpus from the environment."""
    if storage is not None:
        return

    storage_type = os.environ.get('KANATYPE_STORAGE', 'file')
    if storage_type == 'postgres':
        new_storage = PostgresStorage(os.environ.get('DATABASE_URL'))
        logger.info("Using PostgreSQL storage")
    else:
        new_storage = FileStorage(os.environ.get('KANATYPE_STATE_DIR'))
        logger.info(f"Using file storage at {new_storage.state_file}")

    configure(new_storage, get_corpus(os.environ.get('KANATYPE_CORPUS')))
    logger.info(f"Loaded corpus with {len(corpus)} sentences")


@app.on_event("shutdown")
async def shutdown():
    if session is not None:
        session.end()


def get_session() -> PracticeSession:
    if session is None:
        raise HTTPException(status_code=503, detail="Server not configured")
    return session


@app.get("/")
async def root():
    return {"service": "kanatype", "status": "ok"}


@app.get("/api/status", response_model=StatusResponse)
async def get_status():
    """Get the learner's overall progress."""
    practice = get_session()
    now = now_ms()
    async with session_lock:
        profile = practice.load_profile(now)
        stats_map = storage.get_all_character_stats()
        return StatusResponse(
            profile=profile.to_dict(),
            tracked_units=len(stats_map),
            mastered_units=sum(1 for s in stats_map.values() if s.level == LEVEL_MASTERED),
            due_count=len(due_for_review(stats_map, now)),
            day_streak=practice.day_streak(),
            corpus_size=len(corpus),
            last_session=practice.last_session_summary(),
            current_sentence=practice.sentence.id if practice.sentence else None
        )


@app.get("/api/next", response_model=NextSentenceResponse)
async def next_sentence(sentence_id: str = None):
    """Select the next sentence and make it the current one.

    Passing sentence_id presents that corpus item instead of selecting one.
    Waits for an in-flight completion, since selection reads its results.
    """
    practice = get_session()
    async with session_lock:
        if not practice.active:
            practice.start()
        if sentence_id is not None:
            chosen = get_sentence(corpus, sentence_id)
            if chosen is None:
                raise HTTPException(status_code=404, detail=f"Unknown sentence: {sentence_id}")
            difficulty = calculate_sentence_difficulty(chosen, storage.get_all_character_stats())
            practice.present(chosen, difficulty)
            candidate = ScoredSentence(chosen, difficulty, 0.0)
        else:
            candidate = practice.next_sentence(corpus, rng)
        if candidate is None:
            raise HTTPException(status_code=500, detail="No sentences available")
        tokens = practice.tokens

    sentence = candidate.sentence
    return NextSentenceResponse(
        id=sentence.id,
        surface=sentence.surface,
        reading=sentence.reading,
        tokens=[TokenInfo(**t.to_dict()) for t in tokens],
        romaji=canonical_romaji(tokens),
        difficulty=round(candidate.difficulty, 3),
        jlpt=sentence.jlpt
    )


@app.post("/api/type", response_model=TypeResponse)
async def type_text(request: TypeRequest):
    """Feed typed input to the current sentence."""
    practice = get_session()
    end = now_ms()
    async with session_lock:
        try:
            outcomes = practice.feed_text(request.text, end - max(0, request.elapsed_ms), end)
        except SessionError as e:
            raise HTTPException(status_code=409, detail=str(e))

        token = practice.current_token
        return TypeResponse(
            index=practice.index,
            token_count=len(practice.tokens),
            buffer=practice.buffer,
            complete=practice.is_complete,
            had_errors=practice.had_errors,
            errors=sum(1 for o in outcomes if not o.matched and not o.partial),
            current_unit=token.unit if token else None
        )


@app.post("/api/match", response_model=MatchResponse)
async def match(request: MatchRequest):
    """Stateless matcher call against an arbitrary reading."""
    outcome = match_romaji(tokenize(request.reading), request.index, request.input)
    return MatchResponse(**outcome.to_dict())


@app.post("/api/hint", response_model=HintResponse)
async def hint():
    """Reveal the spelling of the current unit."""
    practice = get_session()
    async with session_lock:
        try:
            spelling = practice.mark_hint()
        except SessionError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return HintResponse(unit=practice.current_token.unit, romaji=spelling)


@app.post("/api/complete", response_model=CompleteResponse)
async def complete():
    """Commit the finished sentence and adjust difficulty."""
    practice = get_session()
    async with session_lock:
        if not practice.is_complete:
            raise HTTPException(status_code=409, detail="Sentence is not complete")
        before = practice.load_profile().current_difficulty
        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(None, practice.complete)
        except SessionError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except Exception as e:
            logger.error(f"Completion failed: {type(e).__name__}: {e}")
            raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}: {str(e)}")

        return CompleteResponse(
            result=result.to_dict(),
            profile=practice.load_profile().to_dict(),
            difficulty_before=before,
            day_streak=practice.day_streak()
        )


@app.post("/api/abandon")
async def abandon():
    """Discard the current sentence without recording it."""
    practice = get_session()
    async with session_lock:
        sentence_id = practice.sentence.id if practice.sentence else None
        practice.abandon()
    return {"abandoned": sentence_id}


@app.get("/api/mastery")
async def get_mastery():
    """Stats for every unit practiced so far."""
    get_session()
    stats_map = storage.get_all_character_stats()
    return {"characters": [s.to_dict() for s in sorted(stats_map.values(), key=lambda s: s.character)]}


@app.get("/api/review-due")
async def get_review_due():
    """Units whose review time has passed."""
    get_session()
    due = due_for_review(storage.get_all_character_stats(), now_ms())
    return {"characters": [s.to_dict() for s in due]}


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
