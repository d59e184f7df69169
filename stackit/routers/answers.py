from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity, get_current_identity
from stackit.database import get_db
from stackit.schemas import (
    AnswerCreate,
    AnswerEnvelope,
    AnswerListResponse,
    AnswerMutation,
    AnswerUpdate,
    MessageResponse,
    VoteRequest,
    VoteResponse,
)
from stackit.services import answer_service, vote_service

router = APIRouter(prefix="/api/v1/answers", tags=["answers"])


@router.get("/question/{question_id}", response_model=AnswerListResponse)
async def list_answers(question_id: int, db: AsyncSession = Depends(get_db)):
    return {"answers": await answer_service.get_answers_for_question(db, question_id)}


@router.get("/{answer_id}", response_model=AnswerEnvelope)
async def get_answer(answer_id: int, db: AsyncSession = Depends(get_db)):
    return {"answer": await answer_service.get_answer(db, answer_id)}


@router.post("", status_code=201, response_model=AnswerMutation)
async def create_answer(
    data: AnswerCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    answer = await answer_service.create_answer(db, identity, data)
    return {"message": "Answer posted successfully", "answer": answer}


@router.put("/{answer_id}", response_model=AnswerMutation)
async def update_answer(
    answer_id: int,
    data: AnswerUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    answer = await answer_service.update_answer(db, answer_id, identity, data)
    return {"message": "Answer updated successfully", "answer": answer}


@router.delete("/{answer_id}", response_model=MessageResponse)
async def delete_answer(
    answer_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await answer_service.delete_answer(db, answer_id, identity)
    return {"message": "Answer deleted successfully"}


@router.post("/{answer_id}/vote", response_model=VoteResponse)
async def vote_answer(
    answer_id: int,
    data: VoteRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    votes = await vote_service.cast_vote(db, answer_id, "answer", identity, data.vote)
    return {"message": "Vote recorded successfully", "votes": votes}
