from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user, get_answer_backend_dep
from core.settings import settings
from models.orm_user import UserEntity
from schemas.chat import ChatHistoryOut, ChatMessageOut, SendMessageIn, SendMessageOut
from services.answer_service import AnswerBackend
from services.chat_service import get_chat_history, send_message

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post("/messages", response_model=SendMessageOut)
def post_message(
    data: SendMessageIn,
    user: UserEntity = Depends(get_current_user),
    db: Session = Depends(get_db),
    answers: AnswerBackend = Depends(get_answer_backend_dep),
):
    msg, consumption = send_message(db, user.id, data.question, answers)
    return SendMessageOut(
        message=ChatMessageOut.model_validate(msg),
        remaining_free=consumption.remaining_free,
        remaining_bundle=consumption.remaining_bundle,
    )


@router.get("/messages", response_model=ChatHistoryOut)
def history(
    limit: int = Query(default=settings.chat_history_limit, ge=1, le=200),
    user: UserEntity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    msgs = get_chat_history(db, user.id, limit=limit)
    return ChatHistoryOut(messages=[ChatMessageOut.model_validate(m) for m in msgs])
