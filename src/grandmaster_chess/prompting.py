"""
Prompt builder and response schema for AI move requests.

The user prompt is rendered from a template with {FEN} and {HISTORY}
placeholders; the schema constrains the reply to {"move", "explanation"}.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

DEFAULT_SYSTEM = "You are a chess Grandmaster advising the side to move."
DEFAULT_TEMPLATE = """Analyze the following chess position (FEN) and provide the best move for the current player.
FEN: {FEN}
Last moves: {HISTORY}

You are a Grandmaster. Respond with the best move in Standard Algebraic Notation (SAN) or UCI format (e.g., 'e4', 'Nf3', 'e2e4').
Explain briefly why this is the best move."""

MOVE_SCHEMA = {
    "type": "object",
    "properties": {
        "move": {
            "type": "string",
            "description": "The recommended move in SAN or UCI format.",
        },
        "explanation": {
            "type": "string",
            "description": "Brief grandmaster reasoning.",
        },
    },
    "required": ["move", "explanation"],
    "additionalProperties": False,
}


@dataclass
class PromptConfig:
    """Configuration for shaping move prompts."""

    system_instructions: str = DEFAULT_SYSTEM
    template: str = DEFAULT_TEMPLATE
    history_plies: int = 10


def history_tail(history: Sequence[str], max_plies: int) -> list[str]:
    """Return at most the last max_plies entries of history."""
    if max_plies <= 0:
        return []
    return list(history)[-max_plies:]


def render_custom_prompt(template: str, values: Dict[str, str]) -> str:
    """Replace known placeholders in the template. Unknown tokens are left intact."""
    rendered = template or ""
    for key, val in values.items():
        rendered = rendered.replace(f"{{{key}}}", val)
    return rendered


def build_move_messages(fen: str, history: Sequence[str], cfg: PromptConfig | None = None) -> list[dict]:
    cfg = cfg or PromptConfig()
    tail = history_tail(history, cfg.history_plies)
    user = render_custom_prompt(cfg.template, {"FEN": fen, "HISTORY": ", ".join(tail)})
    return [
        {"role": "system", "content": cfg.system_instructions},
        {"role": "user", "content": user},
    ]


def response_format() -> dict:
    """Chat-completions response_format requesting schema-constrained JSON."""
    return {
        "type": "json_schema",
        "json_schema": {"name": "move_suggestion", "strict": True, "schema": MOVE_SCHEMA},
    }
