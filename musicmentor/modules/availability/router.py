"""Availability API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from musicmentor.modules.availability.schemas import (
    AvailabilityTemplateRead,
    AvailabilityTemplateUpsert,
    SlotListingRead,
)
from musicmentor.modules.availability.service import AvailabilityService, get_availability_service
from musicmentor.modules.identity.service import get_current_user

router = APIRouter(prefix="/availability", tags=["availability"])


@router.put("/me", response_model=AvailabilityTemplateRead)
async def upsert_my_template(
    payload: AvailabilityTemplateUpsert,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(get_current_user),
) -> AvailabilityTemplateRead:
    """Publish or replace the current mentor's weekly availability."""
    availability = await service.upsert_my_template(payload, current_user)
    return AvailabilityTemplateRead.model_validate(availability)


@router.get("/mentors/{mentor_id}", response_model=AvailabilityTemplateRead)
async def get_mentor_template(
    mentor_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityTemplateRead:
    availability = await service.get_template(mentor_id)
    return AvailabilityTemplateRead.model_validate(availability)


@router.get("/mentors/{mentor_id}/slots", response_model=SlotListingRead)
async def get_bookable_slots(
    mentor_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotListingRead:
    """Bookable slots for the next weeks, grouped by date."""
    listing = await service.get_bookable_slots(mentor_id)
    return SlotListingRead.model_validate(listing)
