from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from core.errors import NotFoundError
from models.orm_chat_message import ChatMessageEntity
from repositories.user_repository import UserRepository
from services.answer_service import AnswerBackend, get_answer_backend
from services.usage_service import Consumption, consume_message

logger = logging.getLogger(__name__)


def send_message(
    db: Session,
    user_id: int,
    question: str,
    answers: AnswerBackend | None = None,
) -> tuple[ChatMessageEntity, Consumption]:
    consumption = consume_message(db, user_id)

    answer = (answers or get_answer_backend()).answer(question)

    msg = ChatMessageEntity(
        user_id=user_id,
        question=question,
        answer=answer.text,
        tokens_used=answer.tokens_used,
        source=consumption.source_label,
    )
    db.add(msg)
    db.commit()
    db.refresh(msg)
    logger.info("User %s sent message %s (paid by %s)", user_id, msg.id, msg.source)
    return msg, consumption


def get_chat_history(db: Session, user_id: int, limit: int = 50) -> list[ChatMessageEntity]:
    if not UserRepository(db).exists(user_id):
        raise NotFoundError("User")
    return (
        db.query(ChatMessageEntity)
        .filter(ChatMessageEntity.user_id == user_id)
        .order_by(ChatMessageEntity.created_at.desc())
        .limit(limit)
        .all()
    )
