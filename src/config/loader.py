# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "mindelo_ride"
    VERSION: str = "2.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    DEFAULT_LANGUAGE: str = "pt"


class DeploymentSettings(BaseModel):
    """Настройки развертывания API."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class AuthSettings(BaseModel):
    """Настройки аутентификации (JWT и хеширование паролей)."""
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        """Берёт секрет из окружения; если его нет, генерирует на время жизни процесса."""
        if not v:
            v = os.getenv("JWT_SECRET", "")
        if not v:
            return secrets.token_urlsafe(32)
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def check_rounds(cls, v: int) -> int:
        """bcrypt допускает от 4 до 31 раунда."""
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS должен быть в диапазоне 4..31")
        return v


class SecuritySettings(BaseModel):
    """Настройки ограничения частоты запросов."""
    RATE_LIMIT_MAX_ATTEMPTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 900
    MAX_INPUT_LENGTH: int = 1000


class FixedRoute(BaseModel):
    """Маршрут с фиксированной ценой (в обе стороны)."""
    origin: str
    destination: str
    price: int


class PricingSettings(BaseModel):
    """Настройки тарифов."""
    CURRENCY: str = "CVE"
    BASE_FARE: int = 100
    FARE_PER_KM: int = 80
    DEFAULT_DISTANCE_KM: int = 3
    MINOR_UNITS_PER_UNIT: int = 100
    FIXED_ROUTES: list[FixedRoute] = Field(default_factory=lambda: [
        FixedRoute(origin="Centro", destination="Laginha", price=300),
        FixedRoute(origin="Centro", destination="Aeroporto", price=1200),
        FixedRoute(origin="Laginha", destination="Ribeira Bote", price=450),
    ])


class SubscriptionSettings(BaseModel):
    """Настройки подписки водителей."""
    TRIAL_MONTHS: int = 1
    MONTHLY_FEE: int = 1500


class SeedSettings(BaseModel):
    """Демонстрационные данные, создаваемые при старте."""
    SEED_DEMO_DATA: bool = False
    SEED_ADMIN_EMAIL: str = "admin@mindeloride.cv"
    SEED_ADMIN_PASSWORD: str = ""
    SEED_USER_PASSWORD: str = ""

    @field_validator("SEED_ADMIN_PASSWORD", "SEED_USER_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None, info) -> str:
        """Пароли демо-аккаунтов берутся из переменных окружения."""
        if not v:
            return os.getenv(info.field_name, "")
        return v


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    subscription: SubscriptionSettings = Field(default_factory=SubscriptionSettings)
    seed: SeedSettings = Field(default_factory=SeedSettings)

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты и порты переопределяются из переменных окружения.
        """
        config_data = load_config_json()
        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """Создаёт Settings из плоского словаря ключей config.json."""
        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        pricing_defaults = PricingSettings()

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "mindelo_ride"),
                VERSION=data.get("VERSION", "2.0.0"),
                DEBUG=data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
                DEFAULT_LANGUAGE=data.get("DEFAULT_LANGUAGE", "pt"),
            ),
            deployment=DeploymentSettings(
                API_HOST=os.getenv("API_HOST", data.get("API_HOST", "0.0.0.0")),
                API_PORT=int(os.getenv("API_PORT", data.get("API_PORT", 5000))),
                CORS_ORIGINS=data.get("CORS_ORIGINS", ["*"]),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "DEBUG")),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            auth=AuthSettings(
                JWT_SECRET=os.getenv("JWT_SECRET", data.get("JWT_SECRET", "")),
                JWT_ALGORITHM=data.get("JWT_ALGORITHM", "HS256"),
                TOKEN_TTL_DAYS=data.get("TOKEN_TTL_DAYS", 7),
                BCRYPT_ROUNDS=int(os.getenv("BCRYPT_ROUNDS", data.get("BCRYPT_ROUNDS", 12))),
            ),
            security=SecuritySettings(
                RATE_LIMIT_MAX_ATTEMPTS=data.get("RATE_LIMIT_MAX_ATTEMPTS", 5),
                RATE_LIMIT_WINDOW_SECONDS=data.get("RATE_LIMIT_WINDOW_SECONDS", 900),
                MAX_INPUT_LENGTH=data.get("MAX_INPUT_LENGTH", 1000),
            ),
            pricing=PricingSettings(
                CURRENCY=data.get("CURRENCY", "CVE"),
                BASE_FARE=data.get("BASE_FARE", 100),
                FARE_PER_KM=data.get("FARE_PER_KM", 80),
                DEFAULT_DISTANCE_KM=data.get("DEFAULT_DISTANCE_KM", 3),
                MINOR_UNITS_PER_UNIT=data.get("MINOR_UNITS_PER_UNIT", 100),
                FIXED_ROUTES=data.get("FIXED_ROUTES", pricing_defaults.FIXED_ROUTES),
            ),
            subscription=SubscriptionSettings(
                TRIAL_MONTHS=data.get("TRIAL_MONTHS", 1),
                MONTHLY_FEE=data.get("MONTHLY_FEE", 1500),
            ),
            seed=SeedSettings(
                SEED_DEMO_DATA=os.getenv("SEED_DEMO_DATA", str(data.get("SEED_DEMO_DATA", False))).lower() == "true",
                SEED_ADMIN_EMAIL=data.get("SEED_ADMIN_EMAIL", "admin@mindeloride.cv"),
                SEED_ADMIN_PASSWORD=os.getenv("SEED_ADMIN_PASSWORD", ""),
                SEED_USER_PASSWORD=os.getenv("SEED_USER_PASSWORD", ""),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением config.json подгружает .env.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
