"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from musicmentor.core.enums import BookingStatusEnum
from musicmentor.modules.booking.schemas import (
    BookingConfirmationRead,
    BookingCreate,
    BookingRead,
    DashboardStats,
)
from musicmentor.modules.booking.service import BookingService, get_booking_service
from musicmentor.modules.identity.service import get_current_user
from musicmentor.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/booking", tags=["booking"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate = Body(...),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Submit a booking request for a slot or a preferred time of day."""
    booking = await service.create_booking(payload, current_user)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/confirm", response_model=BookingConfirmationRead)
async def confirm_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingConfirmationRead:
    """Confirm booking from PENDING to CONFIRMED."""
    outcome = await service.confirm_booking(booking_id, current_user)
    return BookingConfirmationRead(
        booking=BookingRead.model_validate(outcome.booking),
        has_video=outcome.has_video,
        message=outcome.message,
    )


@router.post("/{booking_id}/decline", response_model=BookingRead)
async def decline_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    booking = await service.decline_booking(booking_id, current_user)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/complete", response_model=BookingRead)
async def complete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    booking = await service.complete_booking(booking_id, current_user)
    return BookingRead.model_validate(booking)


@router.get("/my", response_model=Page[BookingRead])
async def list_my_bookings(
    booking_status: BookingStatusEnum | None = Query(default=None, alias="status"),
    active: bool = Query(default=False),
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> Page[BookingRead]:
    """List bookings for current user; `active=true` keeps pending and confirmed ones."""
    items, total = await service.list_bookings(
        current_user,
        booking_status,
        pagination.limit,
        pagination.offset,
        active_only=active,
    )
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> DashboardStats:
    """Booking counters for the mentor or student dashboard."""
    return await service.get_dashboard_stats(current_user)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    booking = await service.get_booking(booking_id, current_user)
    return BookingRead.model_validate(booking)
