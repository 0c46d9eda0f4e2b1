# src/services/api/routes/rides.py
from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends

from src.core.rides.models import RideCompleteDTO, RideCreateDTO
from src.core.rides.service import RideService
from src.services.api.dependencies import CurrentIdentity, get_ride_service

router = APIRouter(prefix="/rides", tags=["Rides"])

RideServiceDep = Annotated[RideService, Depends(get_ride_service)]


@router.post("")
async def request_ride(
    dto: RideCreateDTO,
    identity: CurrentIdentity,
    rides: RideServiceDep,
) -> dict[str, Any]:
    """Заказ поездки пассажиром. Водители получают new_ride."""
    ride = await rides.request_ride(
        identity.user_id,
        dto.origin,
        dto.destination,
        phone=dto.passenger_phone,
        notes=dto.notes,
    )
    return ride.to_client()


@router.get("")
async def list_rides(identity: CurrentIdentity, rides: RideServiceDep) -> list[dict[str, Any]]:
    return [ride.to_client() for ride in await rides.list_rides_for_user(identity)]


@router.get("/pending")
async def list_pending_rides(identity: CurrentIdentity, rides: RideServiceDep) -> list[dict[str, Any]]:
    return [ride.to_client() for ride in await rides.list_pending_rides(identity)]


@router.get("/{ride_id}")
async def get_ride(ride_id: str, identity: CurrentIdentity, rides: RideServiceDep) -> dict[str, Any]:
    ride = await rides.get_ride(ride_id, identity)
    return ride.to_client()


@router.patch("/{ride_id}/accept")
async def accept_ride(ride_id: str, identity: CurrentIdentity, rides: RideServiceDep) -> dict[str, Any]:
    ride = await rides.accept_ride(ride_id, identity.user_id)
    return ride.to_client()


@router.patch("/{ride_id}/start")
async def start_ride(ride_id: str, identity: CurrentIdentity, rides: RideServiceDep) -> dict[str, Any]:
    ride = await rides.start_ride(ride_id, identity.user_id)
    return ride.to_client()


@router.patch("/{ride_id}/complete")
async def complete_ride(
    ride_id: str,
    identity: CurrentIdentity,
    rides: RideServiceDep,
    dto: Annotated[Optional[RideCompleteDTO], Body()] = None,
) -> dict[str, Any]:
    dto = dto or RideCompleteDTO()
    ride = await rides.complete_ride(
        ride_id,
        identity.user_id,
        final_price=dto.final_price,
        distance=dto.distance,
    )
    return ride.to_client()


@router.patch("/{ride_id}/cancel")
async def cancel_ride(ride_id: str, identity: CurrentIdentity, rides: RideServiceDep) -> dict[str, Any]:
    ride = await rides.cancel_ride(ride_id, identity.user_id)
    return ride.to_client()
