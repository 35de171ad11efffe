from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from graphview.config import settings


@dataclass(frozen=True)
class Session:
    """Connection context passed explicitly to the API client and stream.

    Holds the platform base URLs and the bearer token so that nothing below
    the view layer reads ambient configuration.
    """

    api_url: str
    ws_url: str
    token: str = ""
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, token: str | None = None) -> Session:
        return cls(
            api_url=settings.platform_api_url.rstrip("/"),
            ws_url=settings.platform_stream_url,
            token=settings.platform_token if token is None else token,
            timeout=settings.platform_request_timeout,
        )

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def stream_url(self, app_name: str) -> str:
        """WebSocket URL for *app_name*; the token travels as a query parameter."""
        url = f"{self.ws_url.rstrip('/')}/graph/{quote(app_name, safe='')}/ws"
        if self.token:
            url += f"?token={quote(self.token, safe='')}"
        return url
