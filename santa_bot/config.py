import os
from dataclasses import dataclass


@dataclass
class Settings:
    bot_token: str
    dispatch_url: str
    dispatch_timeout: float
    max_draw_attempts: int
    min_participants: int
    max_participants: int
    currency: str
    log_level: str


def load_settings() -> Settings:
    return Settings(
        bot_token=os.environ["BOT_TOKEN"],
        dispatch_url=os.environ["DISPATCH_URL"],
        dispatch_timeout=float(os.environ.get("DISPATCH_TIMEOUT", "30")),
        max_draw_attempts=int(os.environ.get("MAX_DRAW_ATTEMPTS", "100")),
        min_participants=int(os.environ.get("MIN_PARTICIPANTS", "3")),
        max_participants=int(os.environ.get("MAX_PARTICIPANTS", "100")),
        currency=os.environ.get("CURRENCY", "$"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
