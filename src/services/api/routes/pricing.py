# src/services/api/routes/pricing.py
from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from src.common.exceptions import ValidationError
from src.core.pricing.service import PriceCalculator
from src.core.rides.models import PriceRequestDTO
from src.services.api.dependencies import get_price_calculator

router = APIRouter(tags=["Pricing"])


@router.post("/calculate-price")
async def calculate_price(
    dto: PriceRequestDTO,
    pricing: Annotated[PriceCalculator, Depends(get_price_calculator)],
) -> dict[str, Any]:
    """Публичный калькулятор: цена в целых CVE."""
    if not dto.origin or not dto.destination:
        raise ValidationError("Укажите адреса", message_key="ADDRESS_REQUIRED")
    return pricing.quote(dto.origin, dto.destination).to_client()
