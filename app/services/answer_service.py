from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import requests

from core.errors import AnswerGenerationError
from core.settings import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant. Answer the user's question concisely."


@dataclass(frozen=True)
class Answer:
    text: str
    tokens_used: int


class AnswerBackend(Protocol):
    def answer(self, question: str) -> Answer:
        ...


class MockAnswerBackend:
    def answer(self, question: str) -> Answer:
        text = f"This is a mock answer to: {question}"
        return Answer(text=text, tokens_used=len(text.split()))


class OllamaAnswerBackend:
    def __init__(
        self,
        base_url: str = settings.ollama_url,
        model: str = settings.ollama_model,
        timeout: float = settings.ollama_timeout_sec,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    def answer(self, question: str) -> Answer:
        payload = {
            "model": self.model,
            "stream": False,
            "keep_alive": settings.ollama_keep_alive,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": question},
            ],
            "options": {"temperature": 0.7, "top_p": 0.9, "num_predict": settings.answer_max_tokens},
        }
        try:
            r = requests.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Ollama request failed: %s", e)
            raise AnswerGenerationError("Answer service is unavailable, please try again later")

        content = ((data.get("message") or {}).get("content") or "").strip()
        if not content:
            raise AnswerGenerationError("Answer service returned an empty answer")
        tokens = int(data.get("eval_count") or len(content.split()))
        return Answer(text=content, tokens_used=tokens)


def get_answer_backend(name: str | None = None) -> AnswerBackend:
    name = name or settings.answer_backend
    if name == "ollama":
        return OllamaAnswerBackend()
    return MockAnswerBackend()
