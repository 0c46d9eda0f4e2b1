# src/services/api/routes/admin.py
"""
Административные endpoints (только роль admin).
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request

from src.common.localization import get_text
from src.core.admin.models import SubscriptionStatusDTO, VerifyDriverDTO
from src.core.admin.service import AdminService
from src.services.api.dependencies import CurrentIdentity, get_admin_service
from src.services.api.i18n import request_language

router = APIRouter(prefix="/admin", tags=["Admin"])

AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]


@router.get("/stats")
async def get_stats(identity: CurrentIdentity, admin: AdminServiceDep) -> dict[str, Any]:
    stats = await admin.get_stats(identity)
    return stats.to_client()


@router.get("/users")
async def list_users(identity: CurrentIdentity, admin: AdminServiceDep) -> list[dict[str, Any]]:
    return [user.to_client() for user in await admin.list_users(identity)]


@router.get("/rides")
async def list_rides(identity: CurrentIdentity, admin: AdminServiceDep) -> list[dict[str, Any]]:
    return [ride.to_client() for ride in await admin.list_rides(identity)]


@router.patch("/drivers/{driver_id}/verify")
async def verify_driver(
    driver_id: str,
    dto: VerifyDriverDTO,
    identity: CurrentIdentity,
    admin: AdminServiceDep,
    request: Request,
) -> dict[str, Any]:
    driver = await admin.verify_driver(identity, driver_id, dto.verified)
    key = "DRIVER_VERIFIED" if dto.verified else "DRIVER_UNVERIFIED"
    return {
        "message": get_text(key, request_language(request)),
        "driver": driver.to_client(),
    }


@router.patch("/drivers/{driver_id}/subscription")
async def set_subscription_status(
    driver_id: str,
    dto: SubscriptionStatusDTO,
    identity: CurrentIdentity,
    admin: AdminServiceDep,
) -> dict[str, Any]:
    """Явная смена статуса подписки (единственный способ завершить пробный период)."""
    subscription = await admin.set_subscription_status(identity, driver_id, dto.status)
    return subscription.to_client()


@router.get("/audit-logs")
async def get_audit_logs(
    identity: CurrentIdentity,
    admin: AdminServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[dict[str, Any]]:
    return [entry.to_client() for entry in await admin.get_audit_logs(identity, limit)]
