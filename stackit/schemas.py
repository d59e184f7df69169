from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire format is camelCase; snake_case is accepted on input too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


# --- User ---

class AuthorSummary(CamelModel):
    id: int
    username: str
    reputation: int = 0


class UserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=128)


class UserUpdate(CamelModel):
    username: str | None = Field(None, min_length=3, max_length=50)
    email: str | None = Field(None, min_length=3, max_length=255)
    profile_picture: str | None = Field(None, max_length=500)


class RoleUpdate(CamelModel):
    role: Literal["guest", "user", "admin"]


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    role: str
    reputation: int
    banned: bool
    profile_picture: str | None = None
    created_at: datetime


class UserEnvelope(CamelModel):
    user: UserResponse


class UserMutation(MessageResponse):
    user: UserResponse


class UserListResponse(CamelModel):
    users: list[UserResponse]


class UserStats(CamelModel):
    questions_count: int
    answers_count: int
    accepted_answers_count: int
    total_votes: int
    reputation: int
    member_since: datetime


class UserStatsResponse(CamelModel):
    stats: UserStats


# --- Question ---

class QuestionCreate(CamelModel):
    title: str = Field(max_length=300)
    description: str
    tags: list[str]


class QuestionUpdate(CamelModel):
    title: str | None = Field(None, max_length=300)
    description: str | None = None
    tags: list[str] | None = None


class QuestionResponse(CamelModel):
    id: int
    title: str
    description: str
    author_id: int
    author: AuthorSummary | None = None
    tags: list[str] = []
    votes: int
    answer_ids: list[int] = []
    answer_count: int = 0
    accepted_answer_id: int | None = None
    created_at: datetime
    updated_at: datetime


class QuestionEnvelope(CamelModel):
    question: QuestionResponse


class QuestionMutation(MessageResponse):
    question: QuestionResponse


class QuestionListResponse(CamelModel):
    questions: list[QuestionResponse]
    total: int
    page: int
    total_pages: int


# --- Answer ---

class AnswerCreate(CamelModel):
    question_id: int
    content: str


class AnswerUpdate(CamelModel):
    content: str


class AnswerResponse(CamelModel):
    id: int
    question_id: int
    content: str
    author_id: int
    author: AuthorSummary | None = None
    votes: int
    is_accepted: bool
    created_at: datetime


class AnswerEnvelope(CamelModel):
    answer: AnswerResponse


class AnswerMutation(MessageResponse):
    answer: AnswerResponse


class AnswerListResponse(CamelModel):
    answers: list[AnswerResponse]


# --- Profile ---

class ProfileAnswer(AnswerResponse):
    question_title: str | None = None


class UserProfileResponse(CamelModel):
    user: UserResponse
    questions: list[QuestionResponse]
    answers: list[ProfileAnswer]


# --- Votes ---

class VoteRequest(CamelModel):
    # Strict: JSON true/false must not pass as 1/0.
    vote: StrictInt


class VoteResponse(MessageResponse):
    votes: int


# --- Tags ---

class TagCount(CamelModel):
    tag: str
    count: int


class PopularTagsResponse(CamelModel):
    tags: list[TagCount]


# --- Notification ---

class NotificationResponse(CamelModel):
    id: int
    user_id: int
    type: str
    message: str
    link: str | None = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]


class UnreadCountResponse(CamelModel):
    unread_count: int


class BroadcastRequest(CamelModel):
    message: str
    type: str = "admin-message"


class BroadcastResponse(MessageResponse):
    recipients: int
