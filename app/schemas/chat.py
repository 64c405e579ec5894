from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List


class SendMessageIn(BaseModel):
    question: str = Field(min_length=1, max_length=4000)

    @field_validator("question")
    @classmethod
    def strip_question(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Question is required and must be a non-empty string")
        return v


class ChatMessageOut(BaseModel):
    id: str
    question: str
    answer: str
    tokens_used: int
    source: str
    created_at: datetime

    class Config:
        from_attributes = True


class SendMessageOut(BaseModel):
    message: ChatMessageOut
    remaining_free: int
    remaining_bundle: Optional[int] = None


class ChatHistoryOut(BaseModel):
    messages: List[ChatMessageOut]
