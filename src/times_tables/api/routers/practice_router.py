"""
Practice router.

Endpoints for fetching the next problem, submitting an answer and
resetting progress. Clients only ever receive operands; the product is
computed here.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field

from ...config import Settings
from ...core import Fact, SchedulingEngine, pick_fact
from ...core.fact import MAX_OPERAND, MIN_OPERAND
from ..deps import get_current_user, get_settings_dep, get_store
from ..store import Store

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class ProblemDto(BaseModel):
    a: int
    b: int

    @classmethod
    def from_fact(cls, fact: Fact) -> ProblemDto:
        return cls(a=fact.a, b=fact.b)


class ProgressFields(BaseModel):
    mastered: int
    total: int
    due: int
    unlocked_tables: list[int]
    next_table: int | None


class StateResponse(ProgressFields):
    problem: ProblemDto


class AnswerRequest(BaseModel):
    a: int = Field(ge=MIN_OPERAND, le=MAX_OPERAND)
    b: int = Field(ge=MIN_OPERAND, le=MAX_OPERAND)
    answer: int
    elapsed_secs: float | None = Field(default=None, ge=0)


class AnswerResponse(ProgressFields):
    correct: bool
    correct_answer: int
    next_problem: ProblemDto


def _progress(engine: SchedulingEngine) -> dict:
    summary = engine.summary()
    return {name: summary[name] for name in ProgressFields.model_fields}


# ========================================
# Endpoints
# ========================================


@router.get("/state", response_model=StateResponse, summary="Current problem and progress")
def get_state(
    user_id: int = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> StateResponse:
    engine = store.load_engine(user_id)
    return StateResponse(problem=ProblemDto.from_fact(pick_fact(engine)), **_progress(engine))


@router.post("/answer", response_model=AnswerResponse, summary="Submit an answer")
def submit_answer(
    req: AnswerRequest,
    user_id: int = Depends(get_current_user),
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings_dep),
) -> AnswerResponse:
    """
    Grade an answer, update the user's engine and pick the next problem.

    The next problem avoids repeating the one just answered when anything
    else is available.
    """
    fact = Fact(req.a, req.b)
    correct = req.answer == fact.answer
    elapsed = req.elapsed_secs if req.elapsed_secs is not None else settings.default_elapsed_seconds

    with store.progress_scope(user_id) as engine:
        engine.record_answer(fact, correct, elapsed)

    logger.debug(f"User {user_id} answered {fact.key}: correct={correct}, elapsed={elapsed:.2f}s")

    return AnswerResponse(
        correct=correct,
        correct_answer=fact.answer,
        next_problem=ProblemDto.from_fact(pick_fact(engine, fact)),
        **_progress(engine),
    )


@router.post("/reset", summary="Reset progress")
def reset_progress(
    user_id: int = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> dict[str, str]:
    store.reset_progress(user_id)
    return {"status": "ok"}
