from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity, get_current_identity
from stackit.database import get_db
from stackit.dependencies import PaginationParams, QuestionFilters
from stackit.schemas import (
    AnswerMutation,
    MessageResponse,
    PopularTagsResponse,
    QuestionCreate,
    QuestionEnvelope,
    QuestionListResponse,
    QuestionMutation,
    QuestionUpdate,
    VoteRequest,
    VoteResponse,
)
from stackit.services import question_service, tag_service, vote_service

router = APIRouter(prefix="/api/v1/questions", tags=["questions"])


@router.get("", response_model=QuestionListResponse)
async def list_questions(
    pagination: PaginationParams = Depends(),
    filters: QuestionFilters = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await question_service.list_questions(
        db,
        pagination.page,
        pagination.limit,
        tag=filters.tag,
        search=filters.search,
        sort=filters.sort,
        answered=filters.answered,
    )


@router.get("/tags/popular", response_model=PopularTagsResponse)
async def popular_tags(
    limit: int | None = Query(None, ge=1, le=100, description="Defaults to POPULAR_TAGS_LIMIT."),
    db: AsyncSession = Depends(get_db),
):
    return {"tags": await tag_service.popular_tags(db, limit)}


@router.get("/{question_id}", response_model=QuestionEnvelope)
async def get_question(question_id: int, db: AsyncSession = Depends(get_db)):
    return {"question": await question_service.get_question(db, question_id)}


@router.post("", status_code=201, response_model=QuestionMutation)
async def create_question(
    data: QuestionCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    question = await question_service.create_question(db, identity, data)
    return {"message": "Question created successfully", "question": question}


@router.put("/{question_id}", response_model=QuestionMutation)
async def update_question(
    question_id: int,
    data: QuestionUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    question = await question_service.update_question(db, question_id, identity, data)
    return {"message": "Question updated successfully", "question": question}


@router.delete("/{question_id}", response_model=MessageResponse)
async def delete_question(
    question_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await question_service.delete_question(db, question_id, identity)
    return {"message": "Question deleted successfully"}


@router.post("/{question_id}/vote", response_model=VoteResponse)
async def vote_question(
    question_id: int,
    data: VoteRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    votes = await vote_service.cast_vote(db, question_id, "question", identity, data.vote)
    return {"message": "Vote recorded successfully", "votes": votes}


@router.post("/{question_id}/accept-answer/{answer_id}", response_model=AnswerMutation)
async def accept_answer(
    question_id: int,
    answer_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    answer = await question_service.accept_answer(db, question_id, answer_id, identity)
    return {"message": "Answer accepted successfully", "answer": answer}
