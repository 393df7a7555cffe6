# server/core/ai_delegate.py

import json
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from core import config
from core.errors import UpstreamError


logger = logging.getLogger(__name__)


AVAILABILITY_LEVELS = (
    "Availability levels:\n"
    "3 = available and preferred\n"
    "2 = available\n"
    "1 = available and not preferred\n"
    "0 = not available\n"
)

calendar_system_prompt = (
    "You are a calendar processing assistant. Convert the user's description of when they are free "
    "into a JSON object. Keys are lowercase weekday names (\"monday\") or date ranges "
    "(\"2024-10-29\" or \"2024-10-29/2024-11-02\"). Values are lists of \"HH:MM-HH:MM\" strings, "
    "optionally followed by \"/<level>\" when the user states a preference.\n\n"
    f"{AVAILABILITY_LEVELS}\n"
    "Return only the JSON object, without explanation or code fences."
)

query_system_prompt = (
    "You are a scheduling assistant. Analyze the provided calendars and answer questions about user availability. "
    "The first calendar belongs to the person asking.\n\n"
    f"{AVAILABILITY_LEVELS}\n"
    "Provide clear, concise responses about when users can meet."
)


class AIDelegate(ABC):
    """
    The only way the application talks to a language model. Call sites never
    see provider response shapes: calendar conversion returns structured data
    (or text when the model did not answer with JSON), query answering
    returns text. Any provider failure surfaces as UpstreamError.
    """

    @abstractmethod
    def convert_calendar_input(self, text: str) -> Any:
        ...

    @abstractmethod
    def answer_availability_query(self, question: str, calendars: list[dict]) -> str:
        ...


def parse_availability(raw: str) -> Any:
    """
    Returns the decoded JSON when the model produced some, otherwise the
    stripped text itself.
    """
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        return raw.strip()


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return json.dumps(content)


class ChatOpenAIDelegate(AIDelegate):
    """Chat-completions backed delegate (langchain-openai)."""

    def __init__(self, model: str = config.OPENAI_MODEL):
        self.model = model
        self._llms = {}

    def _llm(self, temperature: float):
        # Built on first use so routes that never reach the model work without an API key.
        if temperature not in self._llms:
            self._llms[temperature] = ChatOpenAI(model=self.model, temperature=temperature)
        return self._llms[temperature]

    def convert_calendar_input(self, text: str) -> Any:
        messages = [
            SystemMessage(content=calendar_system_prompt),
            HumanMessage(content=text),
        ]
        try:
            response = self._llm(0).invoke(messages)
        except Exception as e:
            logger.exception("Calendar conversion failed")
            raise UpstreamError(f"Calendar conversion failed: {e}") from e
        return parse_availability(_content_text(response.content))

    def answer_availability_query(self, question: str, calendars: list[dict]) -> str:
        messages = [
            SystemMessage(content=query_system_prompt),
            HumanMessage(content=f"Calendars: {json.dumps(calendars)}\n\nQuery: {question}"),
        ]
        try:
            response = self._llm(0.7).invoke(messages)
        except Exception as e:
            logger.exception("Availability query failed")
            raise UpstreamError(f"Availability query failed: {e}") from e
        return _content_text(response.content).strip()


class MockDelegate(AIDelegate):
    """Canned answers for local development without an API key."""

    availability = {
        "monday": ["09:00-12:00/2", "13:00-17:00/2"],
        "tuesday": ["10:00-15:00/3"],
        "wednesday": ["09:00-17:00/2"],
    }
    answer = (
        "Based on the calendars provided, the users are both available "
        "on Tuesday between 10:00 AM and 3:00 PM."
    )

    def convert_calendar_input(self, text: str) -> Any:
        return dict(self.availability)

    def answer_availability_query(self, question: str, calendars: list[dict]) -> str:
        return self.answer


@lru_cache()
def build_delegate(provider: str) -> AIDelegate:
    if provider == "mock":
        return MockDelegate()
    if provider == "openai":
        return ChatOpenAIDelegate()
    raise ValueError(f"Unknown AI_PROVIDER: {provider}")


def get_ai_delegate() -> AIDelegate:
    return build_delegate(config.AI_PROVIDER)
