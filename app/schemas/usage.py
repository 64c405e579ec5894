from pydantic import BaseModel
from typing import Optional, List


class BundleQuotaOut(BaseModel):
    bundle_id: str
    tier: str
    messages_used: int
    max_messages: int
    remaining: Optional[int]
    can_use: bool


class QuotaSummaryOut(BaseModel):
    year: int
    month: int
    free_messages_used: int
    free_remaining: int
    bundles: List[BundleQuotaOut]
    can_send: bool


class UsageOut(BaseModel):
    user_id: int
    year: int
    month: int
    messages_used: int
    free_remaining: int
