# src/services/api/routes/auth.py
from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from src.common.exceptions import UnauthorizedError
from src.core.users.models import LoginDTO, RegisterDTO
from src.core.users.service import UserService
from src.services.api.dependencies import CurrentIdentity, get_client_ip, get_user_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register")
async def register(
    dto: RegisterDTO,
    users: Annotated[UserService, Depends(get_user_service)],
    client_ip: Annotated[str, Depends(get_client_ip)],
) -> dict[str, Any]:
    """Регистрация пассажира или водителя. Возвращает пользователя и токен."""
    result = await users.register(dto, client_ip=client_ip)
    return result.to_client()


@router.post("/login")
async def login(
    dto: LoginDTO,
    users: Annotated[UserService, Depends(get_user_service)],
    client_ip: Annotated[str, Depends(get_client_ip)],
) -> dict[str, Any]:
    result = await users.login(dto, client_ip=client_ip)
    if result is None:
        raise UnauthorizedError("Неверный email или пароль", message_key="INVALID_CREDENTIALS")
    return result.to_client()


@router.get("/me")
async def me(
    identity: CurrentIdentity,
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    user = await users.get_user(identity.user_id)
    return {"user": user.to_client()}
