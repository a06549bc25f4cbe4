# signal_relay/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Core
    app_name: str = "Signal Relay"
    debug: bool = False

    # Listener
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8999, validation_alias="PORT")

    # Extra prefix for the status/health routes when running behind a proxy at e.g. /ws
    ws_base_path: str = Field(default="/", validation_alias="WS_BASE_PATH")

    # Presence side file; empty string disables it
    state_file: str = Field(default="online.json", validation_alias="STATE_FILE")

    # WebSocket
    WS_HEARTBEAT_INTERVAL: float = 30   # seconds, 0 disables the liveness sweep
    WS_DRAIN_TIMEOUT: float = 5         # seconds granted to outbound queues on shutdown
    WS_SEND_QUEUE_LIMIT: int = 256      # unread frames per peer before it is closed

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )


settings = Settings()
