from __future__ import annotations

import os
from dataclasses import dataclass

from .ai import SEARCH_DEPTH


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes", "on")


@dataclass
class Settings:
    search_depth: int = SEARCH_DEPTH
    # Pacing so the engine does not answer instantly; no effect on results.
    suggestion_delay_s: float = 0.05
    ai_move_delay_s: float = 0.8
    auto_suggest: bool = True
    max_workers: int = 2
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            search_depth=int(os.getenv("STACKTOE_SEARCH_DEPTH", SEARCH_DEPTH)),
            suggestion_delay_s=float(os.getenv("STACKTOE_SUGGESTION_DELAY", "0.05")),
            ai_move_delay_s=float(os.getenv("STACKTOE_AI_MOVE_DELAY", "0.8")),
            auto_suggest=_env_bool("STACKTOE_AUTO_SUGGEST", True),
            max_workers=int(os.getenv("STACKTOE_MAX_WORKERS", "2")),
            log_level=os.getenv("STACKTOE_LOG_LEVEL", "INFO").upper(),
        )
