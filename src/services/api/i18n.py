# src/services/api/i18n.py
from __future__ import annotations

from fastapi import Request

from src.common.localization import DEFAULT_LANGUAGE, get_available_languages


def request_language(request: Request) -> str:
    """Язык ответа по заголовку Accept-Language (pt по умолчанию)."""
    header = request.headers.get("accept-language", "")
    available = get_available_languages()
    for part in header.split(","):
        code = part.split(";")[0].strip().lower()[:2]
        if code in available:
            return code
    return DEFAULT_LANGUAGE
