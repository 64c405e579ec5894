from fastapi import APIRouter

from api.auth import router as auth_router
from api.subscriptions import router as subscriptions_router
from api.usage import router as usage_router
from api.chat import router as chat_router
from api.admin import router as admin_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(subscriptions_router)
api_router.include_router(usage_router)
api_router.include_router(chat_router)
api_router.include_router(admin_router)
