"""Expo push service config. Base URL and access token from settings (EXPO_API_URL, EXPO_ACCESS_TOKEN) or ExpoPushClient args."""
from beacon_push.config import settings

DEFAULT_BASE_URL = "https://exp.host/--/api/v2"


class ExpoConfig:
    """Base URL, optional access token and timeout for the Expo push API."""

    __slots__ = ("base_url", "access_token", "timeout")

    def __init__(
        self,
        *,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.expo_api_url or DEFAULT_BASE_URL).rstrip("/")
        self.access_token = (access_token if access_token is not None else settings.expo_access_token).strip()
        self.timeout = timeout if timeout is not None else settings.expo_timeout_seconds

    def headers(self) -> dict[str, str]:
        h = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            h["Authorization"] = f"Bearer {self.access_token}"
        return h
