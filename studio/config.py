"""Global configuration via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings

DEFAULT_SLOT_PALETTE = [
    "#F44336",
    "#E91E63",
    "#9C27B0",
    "#673AB7",
    "#3F51B5",
    "#009688",
    "#795548",
    "#607D8B",
    "#000000",
]


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────
    app_name: str = "NLU Studio"
    debug: bool = False
    log_level: str = "INFO"

    # ── Slots ────────────────────────────────────────
    slot_palette: list[str] = list(DEFAULT_SLOT_PALETTE)
    color_seed: int | None = None  # None = unseeded random colour picks

    # ── Change log ───────────────────────────────────
    change_log_enabled: bool = True
    change_log_limit: int = 1000

    model_config = {"env_prefix": "STUDIO_", "env_file": ".env"}


settings = Settings()
