import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from toot_otto.app.engine.constants import DEFAULT_AI_DEPTH, DEFAULT_COLS, DEFAULT_ROWS, MAX_AI_DEPTH, MAX_CELLS

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"

# Environment variable -> settings field
ENV_OVERRIDES = {
    "TOOT_OTTO_ROWS": "rows",
    "TOOT_OTTO_COLS": "cols",
    "TOOT_OTTO_AI_DEPTH": "ai_depth",
    "TOOT_OTTO_SEED": "seed",
    "TOOT_OTTO_LOG_LEVEL": "log_level",
}


class GameSettings(BaseModel):
    rows: int = Field(DEFAULT_ROWS, ge=1)
    cols: int = Field(DEFAULT_COLS, ge=1)
    ai_depth: int = Field(DEFAULT_AI_DEPTH, ge=1, le=MAX_AI_DEPTH)
    with_ai: bool = True
    player_one: str = "Player 1"
    player_two: str = "Player 2"
    seed: Optional[int] = None
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_capacity(self):
        if self.rows * self.cols > MAX_CELLS:
            raise ValueError(f"Board {self.rows}x{self.cols} exceeds {MAX_CELLS} cells")
        return self


def load_settings(path: Optional[str] = None) -> GameSettings:
    """
    Reads the YAML settings file, then applies TOOT_OTTO_* environment
    overrides. Missing files fall back to defaults.
    """
    config_path = Path(path or os.getenv("TOOT_OTTO_CONFIG") or DEFAULT_CONFIG_PATH)

    data = {}
    if config_path.exists():
        with open(config_path, "r") as f:
            raw = yaml.safe_load(f) or {}
        data.update(raw.get("game", {}) or {})
        data.update(raw.get("server", {}) or {})

    for env_key, field in ENV_OVERRIDES.items():
        value = os.getenv(env_key)
        if value not in (None, ""):
            data[field] = value

    return GameSettings(**data)


# Singleton instance
settings = load_settings()
