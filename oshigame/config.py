"""
Configuration - Rule settings and environment settings.

GameConfig holds the rule constants the reducer plays by.
Settings reads the process environment:

    OSHIGAME_ENV         development | production   (default development)
    OSHIGAME_SAVE_DIR    directory for session saves and logs (default ./saves)
    OSHIGAME_LOG_LEVEL   logging level name (default INFO)
    OSHIGAME_SEED        integer seed for dice and card draws (default unseeded)
    ALLOWED_ORIGINS      comma separated CORS origins for the HTTP app (default *)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class GameConfig:
    """Rule constants. The defaults are the printed rules."""
    starting_money: int = 3
    max_rounds: int = 8
    pieces_per_player: int = 4
    charge_for_kagebunshin: bool = False


@dataclass
class Settings:
    env: str = "development"
    save_dir: str = "saves"
    log_level: str = "INFO"
    seed: int | None = None
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @classmethod
    def from_env(cls) -> Settings:
        seed = os.getenv("OSHIGAME_SEED")
        return cls(
            env=os.getenv("OSHIGAME_ENV", "development"),
            save_dir=os.getenv("OSHIGAME_SAVE_DIR", "saves"),
            log_level=os.getenv("OSHIGAME_LOG_LEVEL", "INFO").upper(),
            seed=int(seed) if seed else None,
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )


def configure_logging(level: str | int = "INFO") -> None:
    """Set up root logging for the CLI and the HTTP app."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
