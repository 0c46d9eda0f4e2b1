# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.config.loader import (
    AuthSettings,
    FixedRoute,
    PricingSettings,
    SeedSettings,
    Settings,
    get_config_path,
    get_project_root,
    load_config_json,
)


class TestPaths:
    """Тесты путей проекта."""

    def test_project_root(self) -> None:
        root = get_project_root()

        assert isinstance(root, Path)
        assert (root / "src").exists()
        assert (root / "config").exists()

    def test_config_path(self) -> None:
        path = get_config_path()

        assert path.name == "config.json"
        assert path.parent.name == "config"


class TestLoadConfigJson:
    """Тесты для функции load_config_json."""

    def test_contains_required_keys(self) -> None:
        config = load_config_json()

        for key in ("PROJECT_NAME", "VERSION", "API_PORT", "CURRENCY", "FIXED_ROUTES", "TRIAL_MONTHS"):
            assert key in config, f"Отсутствует ключ: {key}"

    def test_raises_file_not_found(self, tmp_path: Path) -> None:
        with patch("src.config.loader.get_config_path") as mock_path:
            mock_path.return_value = tmp_path / "nonexistent.json"

            with pytest.raises(FileNotFoundError):
                load_config_json()

    def test_reads_custom_file(self, temp_config_file: Path) -> None:
        with patch("src.config.loader.get_config_path") as mock_path:
            mock_path.return_value = temp_config_file

            config = load_config_json()

        assert config["PROJECT_NAME"] == "mindelo_ride_test"


class TestSectionModels:
    """Тесты секций настроек."""

    def test_pricing_defaults(self) -> None:
        pricing = PricingSettings()

        assert pricing.CURRENCY == "CVE"
        assert pricing.BASE_FARE == 100
        assert pricing.MINOR_UNITS_PER_UNIT == 100
        assert FixedRoute(origin="Centro", destination="Laginha", price=300) in pricing.FIXED_ROUTES

    def test_jwt_secret_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET", "secret-from-environment")

        assert AuthSettings(JWT_SECRET="").JWT_SECRET == "secret-from-environment"

    def test_jwt_secret_generated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JWT_SECRET", raising=False)

        first = AuthSettings(JWT_SECRET="").JWT_SECRET
        second = AuthSettings(JWT_SECRET="").JWT_SECRET

        assert len(first) >= 32
        assert first != second

    def test_bcrypt_rounds_range(self) -> None:
        with pytest.raises(ValidationError):
            AuthSettings(JWT_SECRET="x", BCRYPT_ROUNDS=3)
        assert AuthSettings(JWT_SECRET="x", BCRYPT_ROUNDS=4).BCRYPT_ROUNDS == 4

    def test_seed_passwords_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SEED_ADMIN_PASSWORD", "Admin2024!")

        seed = SeedSettings(SEED_ADMIN_PASSWORD="", SEED_USER_PASSWORD="Explicit1!")

        assert seed.SEED_ADMIN_PASSWORD == "Admin2024!"
        assert seed.SEED_USER_PASSWORD == "Explicit1!"


class TestSettingsFromDict:
    """Тесты сборки Settings из config.json."""

    def test_custom_values(self, mock_config: dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("API_HOST", "API_PORT", "LOG_LEVEL", "ENVIRONMENT", "BCRYPT_ROUNDS", "SEED_DEMO_DATA"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_dict(mock_config)

        assert settings.system.PROJECT_NAME == "mindelo_ride_test"
        assert settings.system.ENVIRONMENT == "test"
        assert settings.deployment.API_PORT == 5050
        assert settings.logging.LOG_FORMAT == "json"
        assert settings.auth.TOKEN_TTL_DAYS == 3
        assert settings.security.RATE_LIMIT_MAX_ATTEMPTS == 3
        assert settings.pricing.BASE_FARE == 150
        assert settings.pricing.FIXED_ROUTES == [FixedRoute(origin="Centro", destination="Aeroporto", price=1000)]
        assert settings.subscription.TRIAL_MONTHS == 2
        assert settings.subscription.MONTHLY_FEE == 2000
        assert settings.seed.SEED_DEMO_DATA is False

    def test_comments_ignored(self) -> None:
        settings = Settings.from_dict({"_comment_x": "ignored", "PROJECT_NAME": "demo"})
        assert settings.system.PROJECT_NAME == "demo"

    def test_env_overrides(self, mock_config: dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_PORT", "8080")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.setenv("SEED_DEMO_DATA", "true")
        monkeypatch.setenv("JWT_SECRET", "env-secret")

        settings = Settings.from_dict(mock_config)

        assert settings.deployment.API_PORT == 8080
        assert settings.logging.LOG_LEVEL == "ERROR"
        assert settings.seed.SEED_DEMO_DATA is True
        assert settings.auth.JWT_SECRET == "env-secret"

    def test_defaults_when_keys_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("API_PORT", raising=False)

        settings = Settings.from_dict({})

        assert settings.deployment.API_PORT == 5000
        assert settings.pricing.FIXED_ROUTES == PricingSettings().FIXED_ROUTES
        assert settings.system.DEFAULT_LANGUAGE == "pt"

    def test_project_config_round_trip(self, config_path: Path) -> None:
        data = json.loads(config_path.read_text(encoding="utf-8"))

        settings = Settings.from_dict(data)

        assert len(settings.pricing.FIXED_ROUTES) == len(data["FIXED_ROUTES"])
