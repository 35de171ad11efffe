from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──────────────────────────────────────────────
    app_name: str = "graphview"
    app_version: str = "0.1.0"
    debug: bool = False
    api_key: str = "changeme"

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True

    # ── Platform API ─────────────────────────────────────
    platform_api_url: str = "http://localhost:8081/api"
    platform_ws_url: str = ""
    platform_token: str = ""
    platform_request_timeout: float = 30.0

    @property
    def platform_stream_url(self) -> str:
        """WebSocket base URL, derived from the API URL when not set."""
        if self.platform_ws_url:
            return self.platform_ws_url.rstrip("/")
        base = self.platform_api_url.rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):]
        if base.startswith("http://"):
            return "ws://" + base[len("http://"):]
        return base

    # ── Streaming ────────────────────────────────────────
    stream_max_reconnect_attempts: int = 5
    stream_reconnect_delay: float = 1.0
    stream_ping_interval: float = 30.0
    stream_patch_buffer: int = 256
    activity_log_size: int = 100

    # ── Layout ───────────────────────────────────────────
    layout_canvas_width: float = 900.0
    layout_node_spacing: float = 150.0
    layout_layer_spacing: float = 120.0
    layout_margin: float = 80.0

    # ── Server ───────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
