import os
from typing import NamedTuple


class Settings(NamedTuple):

    store_backend: str
    poll_seconds: float
    notification_probability: float
    dropdown_size: int
    log_level: str


def get_settings() -> Settings:
    return Settings(
        store_backend=os.getenv("STORE_BACKEND", "memory"),
        poll_seconds=float(os.getenv("NOTIFICATION_POLL_SECONDS", "30")),
        notification_probability=float(os.getenv("NOTIFICATION_PROBABILITY", "0.1")),
        dropdown_size=int(os.getenv("DROPDOWN_SIZE", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
