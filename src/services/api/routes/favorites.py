# src/services/api/routes/favorites.py
from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from src.common.localization import get_text
from src.core.users.models import FavoriteDTO
from src.core.users.service import UserService
from src.services.api.dependencies import CurrentIdentity, get_user_service
from src.services.api.i18n import request_language

router = APIRouter(prefix="/favorites", tags=["Favorites"])

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.post("")
async def add_favorite(
    dto: FavoriteDTO,
    identity: CurrentIdentity,
    users: UserServiceDep,
    request: Request,
) -> dict[str, Any]:
    await users.add_favorite(identity, dto.driver_id)
    return {"message": get_text("DRIVER_FAVORITED", request_language(request))}


@router.delete("/{driver_id}")
async def remove_favorite(
    driver_id: str,
    identity: CurrentIdentity,
    users: UserServiceDep,
    request: Request,
) -> dict[str, Any]:
    await users.remove_favorite(identity, driver_id)
    return {"message": get_text("DRIVER_UNFAVORITED", request_language(request))}


@router.get("")
async def list_favorites(identity: CurrentIdentity, users: UserServiceDep) -> list[dict[str, Any]]:
    return [driver.to_client() for driver in await users.list_favorites(identity)]
