"""Runtime settings, read from the environment or a .env file."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_AI_DELAY = 0.3
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    bot_token: Optional[str]
    ai_delay: float = DEFAULT_AI_DELAY  # seconds the bot "thinks" before replying
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_delay(raw: Optional[str]) -> float:
    if raw is None or raw.strip() == "":
        return DEFAULT_AI_DELAY
    try:
        delay = float(raw)
    except ValueError:
        raise ValueError(f"AI_DELAY must be a number of seconds, got {raw!r}") from None
    if not math.isfinite(delay):
        raise ValueError(f"AI_DELAY must be a finite number of seconds, got {raw!r}")
    if delay < 0:
        raise ValueError(f"AI_DELAY must not be negative, got {raw!r}")
    return delay


def _parse_log_level(raw: Optional[str]) -> str:
    level = (raw or DEFAULT_LOG_LEVEL).strip().upper()
    # getLevelName maps known names to their numeric level
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"LOG_LEVEL must be a logging level name, got {raw!r}")
    return level


def load_settings() -> Settings:
    """Load settings; values already in the environment win over .env."""
    load_dotenv()
    return Settings(
        bot_token=os.getenv("BOT_TOKEN") or None,
        ai_delay=_parse_delay(os.getenv("AI_DELAY")),
        log_level=_parse_log_level(os.getenv("LOG_LEVEL")),
    )
