"""
ORM → plain dict conversion shared by the services.

Relationships are only read when the caller eager-loaded them; every
relationship in ``stackit.models`` is ``lazy="noload"`` so an unloaded
one reads as empty/None rather than issuing a hidden query.
"""
from stackit.models import Answer, Notification, Question, User


def author_to_dict(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "reputation": user.reputation,
    }


def user_to_dict(user: User) -> dict:
    """Public user record; the password hash is never included."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "reputation": user.reputation,
        "banned": user.banned,
        "profile_picture": user.profile_picture,
        "created_at": user.created_at,
    }


def question_to_dict(question: Question) -> dict:
    answer_ids = [a.id for a in question.answers]
    return {
        "id": question.id,
        "title": question.title,
        "description": question.description,
        "author_id": question.author_id,
        "author": author_to_dict(question.author),
        "tags": question.tags,
        "votes": question.votes,
        "answer_ids": answer_ids,
        "answer_count": len(answer_ids),
        "accepted_answer_id": question.accepted_answer_id,
        "created_at": question.created_at,
        "updated_at": question.updated_at,
    }


def answer_to_dict(answer: Answer) -> dict:
    return {
        "id": answer.id,
        "question_id": answer.question_id,
        "content": answer.content,
        "author_id": answer.author_id,
        "author": author_to_dict(answer.author),
        "votes": answer.votes,
        "is_accepted": answer.is_accepted,
        "created_at": answer.created_at,
    }


def notification_to_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "message": notification.message,
        "link": notification.link,
        "is_read": notification.is_read,
        "created_at": notification.created_at,
    }
