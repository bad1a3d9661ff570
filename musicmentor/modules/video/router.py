"""Video API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from musicmentor.modules.identity.service import get_current_user
from musicmentor.modules.video.schemas import VideoAccessRead, VideoRoomStatusRead, VideoTokenRead
from musicmentor.modules.video.service import VideoRoomService, get_video_room_service

router = APIRouter(prefix="/video", tags=["video"])


@router.get("/bookings/{booking_id}", response_model=VideoRoomStatusRead)
async def get_room_status(
    booking_id: UUID,
    service: VideoRoomService = Depends(get_video_room_service),
    current_user=Depends(get_current_user),
) -> VideoRoomStatusRead:
    return await service.get_room_status(booking_id, current_user)


@router.get("/bookings/{booking_id}/access", response_model=VideoAccessRead)
async def check_access(
    booking_id: UUID,
    service: VideoRoomService = Depends(get_video_room_service),
    current_user=Depends(get_current_user),
) -> VideoAccessRead:
    """Whether the video window of the booking is open right now."""
    return await service.check_access(booking_id, current_user)


@router.post("/bookings/{booking_id}/token", response_model=VideoTokenRead)
async def create_token(
    booking_id: UUID,
    service: VideoRoomService = Depends(get_video_room_service),
    current_user=Depends(get_current_user),
) -> VideoTokenRead:
    """Issue a meeting token for the current participant."""
    return await service.create_token(booking_id, current_user)
