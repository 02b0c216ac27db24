"""Entrypoint: python -m chat_relay"""
from __future__ import annotations

import uvicorn

from chat_relay.config import settings


def main() -> None:
    uvicorn.run(
        "chat_relay.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
