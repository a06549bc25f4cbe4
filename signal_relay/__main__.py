import uvicorn

from signal_relay.config import settings


def main() -> None:
    uvicorn.run(
        "signal_relay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.LOG_LEVEL.lower(),
        # permessage-deflate stalls behind some proxies
        ws_per_message_deflate=False,
    )


if __name__ == "__main__":
    main()
