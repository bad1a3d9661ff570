"""Daily.co REST client."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import httpx

from musicmentor.core.config import Settings, get_settings
from musicmentor.shared.utils import utc_now

logger = logging.getLogger(__name__)

ROOM_NAME_PREFIX = "musicmentor-session-"
MEETING_TOKEN_TTL = timedelta(hours=1)
DEFAULT_ROOM_TTL = timedelta(hours=24)


class VideoServiceError(Exception):
    """Raised when the video provider rejects a request or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class RoomDetails:
    room_name: str
    room_url: str
    provider_room_id: str | None
    expires_at: datetime


def room_name_for_booking(booking_id: UUID | str) -> str:
    return f"{ROOM_NAME_PREFIX}{booking_id}"


class DailyVideoClient:
    """Thin async wrapper over the Daily.co rooms and meeting-token endpoints."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        domain: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.domain = domain
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "DailyVideoClient":
        return cls(
            api_key=settings.daily_api_key,
            base_url=settings.daily_api_base_url,
            domain=settings.daily_domain,
            timeout_seconds=settings.daily_request_timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def meeting_url(self, room_name: str) -> str:
        return f"https://{self.domain}.daily.co/{room_name}"

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self.enabled:
            raise VideoServiceError("Video service is not configured")

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise VideoServiceError(f"Video provider unreachable: {exc}") from exc

        if response.is_error:
            detail = response.text[:500]
            raise VideoServiceError(
                f"Video provider returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise VideoServiceError(
                "Video provider returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise VideoServiceError("Video provider returned an unexpected body", status_code=response.status_code)
        return data

    async def create_room(self, booking_id: UUID | str) -> RoomDetails:
        """Create a public room dedicated to a booking."""
        data = await self._request(
            "POST",
            "/rooms",
            json={"name": room_name_for_booking(booking_id), "privacy": "public"},
        )
        exp = (data.get("config") or {}).get("exp")
        if isinstance(exp, (int, float)):
            expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        else:
            expires_at = utc_now() + DEFAULT_ROOM_TTL
        room_name = data.get("name")
        if not room_name:
            raise VideoServiceError("Video provider reply is missing the room name")
        logger.info("Created video room %s for booking %s", room_name, booking_id)
        return RoomDetails(
            room_name=room_name,
            room_url=data.get("url") or self.meeting_url(room_name),
            provider_room_id=data.get("id"),
            expires_at=expires_at,
        )

    async def delete_room(self, room_name: str) -> None:
        await self._request("DELETE", f"/rooms/{room_name}")
        logger.info("Deleted video room %s", room_name)

    async def create_meeting_token(self, room_name: str, user_name: str, is_owner: bool = False) -> str:
        """Issue a one hour meeting token; only owners may record."""
        exp = int((utc_now() + MEETING_TOKEN_TTL).timestamp())
        data = await self._request(
            "POST",
            "/meeting-tokens",
            json={
                "room_name": room_name,
                "user_name": user_name,
                "is_owner": is_owner,
                "exp": exp,
                "enable_screenshare": True,
                "enable_recording": is_owner,
            },
        )
        token = data.get("token")
        if not token:
            raise VideoServiceError("Video provider reply is missing the meeting token")
        return token


def get_video_client() -> DailyVideoClient:
    """Dependency provider for the video client."""
    return DailyVideoClient.from_settings(get_settings())
