import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.router import api_router
from core.errors import AppError
from core.logging_config import setup_logging

APP_TITLE = "Chat Quota & Subscriptions"

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_TITLE)

app.include_router(api_router, prefix="/api")


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_SERVER_ERROR", "message": "An unexpected error occurred"},
    )


@app.get("/health")
def health():
    return {"status": "ok"}
