"""
Configuration and environment loading for Grandmaster Chess.

- Loads settings.yml (YAML) from repo root if present; falls back to environment variables.
- Exposes SETTINGS with the AI endpoint, model and tuning knobs used across the project.
"""
from dataclasses import dataclass
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()


def _repo_root() -> str:
    # this file: src/grandmaster_chess/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


_cfg = _load_yaml(os.environ.get("GMCHESS_SETTINGS", os.path.join(_repo_root(), "settings.yml")))


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    if name in _cfg:
        val = _cfg[name]
        return cast(val) if cast else val
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


@dataclass(frozen=True)
class Settings:
    # Auth / endpoint (OpenAI-compatible wire format, gateway by default)
    llm_api_key: str
    api_base: str
    model: str

    # Tuning knobs
    responses_timeout_s: float
    responses_retries: int
    history_plies: int
    ai_move_delay_s: float
    log_level: str


SETTINGS = Settings(
    llm_api_key=_get("GMCHESS_LLM_API_KEY", _get("AI_GATEWAY_API_KEY", "")),
    api_base=_get("GMCHESS_LLM_BASE_URL", _get("AI_GATEWAY_BASE_URL", "https://ai-gateway.vercel.sh/v1")),
    model=_get("GMCHESS_MODEL", "google/gemini-2.5-pro"),
    responses_timeout_s=float(_get("GMCHESS_RESPONSES_TIMEOUT_S", 120.0, cast=float)),
    responses_retries=int(_get("GMCHESS_RESPONSES_RETRIES", 0, cast=int)),
    history_plies=int(_get("GMCHESS_HISTORY_PLIES", 10, cast=int)),
    ai_move_delay_s=float(_get("GMCHESS_AI_MOVE_DELAY_S", 0.8, cast=float)),
    log_level=str(_get("GMCHESS_LOG_LEVEL", "INFO")).upper(),
)
