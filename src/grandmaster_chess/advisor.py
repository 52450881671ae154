from __future__ import annotations
"""
AI move advisor over an OpenAI-compatible chat-completions endpoint (AI gateway by default).

One request per suggestion: FEN + recent SAN history in, schema-constrained
JSON {"move", "explanation"} out. Malformed replies become a sentinel
suggestion with an empty move; transport failures raise AdvisorUnavailable.
"""
from dataclasses import dataclass
from typing import Optional, Sequence
import asyncio
import json
import logging
import random

from openai import AsyncOpenAI, OpenAIError

from .config import SETTINGS, Settings
from .move_validator import strip_code_fence
from .prompting import PromptConfig, build_move_messages, response_format

log = logging.getLogger("advisor")

NO_MOVE_EXPLANATION = "I couldn't calculate a move right now."


class AdvisorUnavailable(RuntimeError):
    """The AI service could not be reached or returned an error."""


@dataclass(frozen=True)
class MoveSuggestion:
    move: str
    explanation: str

    @classmethod
    def empty(cls) -> "MoveSuggestion":
        return cls(move="", explanation=NO_MOVE_EXPLANATION)


def parse_suggestion(raw: str) -> MoveSuggestion:
    """Parse a {"move", "explanation"} JSON reply; any shape violation yields MoveSuggestion.empty()."""
    text = strip_code_fence(raw or "")
    try:
        data = json.loads(text)
    except ValueError:
        log.warning("Failed to parse AI response: %r", text[:500])
        return MoveSuggestion.empty()
    if not isinstance(data, dict):
        log.warning("AI response is not an object: %r", text[:500])
        return MoveSuggestion.empty()
    move = data.get("move")
    explanation = data.get("explanation")
    if not isinstance(move, str) or not isinstance(explanation, str):
        log.warning("AI response missing move/explanation: %r", text[:500])
        return MoveSuggestion.empty()
    return MoveSuggestion(move=move.strip(), explanation=explanation.strip())


def _extract_text(rsp) -> str:
    if not getattr(rsp, "choices", None):
        return ""
    msg = rsp.choices[0].message
    content = getattr(msg, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for c in content:
            if isinstance(c, dict):
                if c.get("type") == "text" and isinstance(c.get("text"), str):
                    parts.append(c["text"])
                continue
            t = getattr(c, "text", None)
            if isinstance(t, str):
                parts.append(t)
        return "\n".join(parts)
    return ""


class MoveAdvisor:
    """Asks the configured model for the best move in a position."""

    def __init__(
        self,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        prompt_cfg: Optional[PromptConfig] = None,
        settings: Settings = SETTINGS,
    ):
        self.settings = settings
        self.model = model or settings.model
        self.prompt_cfg = prompt_cfg or PromptConfig(history_plies=settings.history_plies)
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.llm_api_key or None,
                base_url=self.settings.api_base or None,
            )
        return self._client

    async def suggest_move(self, fen: str, history: Sequence[str]) -> MoveSuggestion:
        messages = build_move_messages(fen, history, self.prompt_cfg)
        raw = await self._request(messages)
        log.debug("Raw AI reply: %s", raw)
        return parse_suggestion(raw)

    async def _request(self, messages: list[dict]) -> str:
        delay = 0.5
        retries = self.settings.responses_retries
        for attempt in range(retries + 1):
            try:
                rsp = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    response_format=response_format(),
                    timeout=self.settings.responses_timeout_s,
                )
                return _extract_text(rsp).strip()
            except OpenAIError as exc:
                if attempt >= retries:
                    raise AdvisorUnavailable(f"AI request failed after {attempt + 1} attempts: {exc}") from exc
                log.warning("AI request failed (attempt %d): %s", attempt + 1, exc)
                sleep_s = delay * (2 ** attempt) * (0.8 + 0.4 * random.random())
                await asyncio.sleep(min(sleep_s, 10.0))
        return ""
