from models.orm_user import UserEntity
from models.orm_subscription import SubscriptionBundleEntity
from models.orm_usage import UserMonthlyUsageEntity
from models.orm_chat_message import ChatMessageEntity

__all__ = [
    "UserEntity",
    "SubscriptionBundleEntity",
    "UserMonthlyUsageEntity",
    "ChatMessageEntity",
]
