from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import UUIDEntity


class ChatMessageEntity(Base, UUIDEntity):
    __tablename__ = "chat_messages"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    tokens_used = Column(Integer, nullable=False, default=0)

    # "free" or the id of the bundle that paid for the message
    source = Column(String, nullable=False)

    user = relationship("UserEntity", back_populates="chat_messages")
