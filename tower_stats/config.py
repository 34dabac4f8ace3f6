"""
Runtime configuration from environment variables.

Entry points load a .env file (python-dotenv) before calling
load_settings(), so the same names work from a shell or a .env file:

    TOWER_STATS_STORE         Path of the JSON record snapshot (stats.json)
    OPENAI_API_KEY            Enables LLM pairing when set
    TOWER_STATS_LLM_MODEL     OpenAI model for LLM pairing (gpt-5)
    TOWER_STATS_LLM_PAIRING   0/false/no turns LLM pairing off
    TOWER_STATS_LOG_LEVEL     Logging level for the CLI (INFO)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel

_FALSY = frozenset({"0", "false", "no", "off"})


class Settings(BaseModel):
    store_path: Path = Path("stats.json")
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-5"
    llm_pairing: bool = True
    log_level: str = "INFO"

    @property
    def llm_enabled(self) -> bool:
        return self.llm_pairing and bool(self.openai_api_key)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()

    return Settings(
        store_path=Path(env.get("TOWER_STATS_STORE", str(defaults.store_path))),
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        llm_model=env.get("TOWER_STATS_LLM_MODEL", defaults.llm_model),
        llm_pairing=env.get("TOWER_STATS_LLM_PAIRING", "1").strip().lower() not in _FALSY,
        log_level=env.get("TOWER_STATS_LOG_LEVEL", defaults.log_level).upper(),
    )
