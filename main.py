#!/usr/bin/env python3
# main.py
"""
Главная точка входа Mindelo Ride.
Запускает HTTP/WebSocket API на настроенном хосте и порту.
"""

from __future__ import annotations

import asyncio
import signal
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg


# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None


def setup_signal_handlers(server) -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()
            server.should_exit = True

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_api() -> None:
    """Запускает HTTP/WebSocket API."""
    import uvicorn

    from src.services.api.app import create_app

    host = settings.deployment.API_HOST
    port = settings.deployment.API_PORT

    await log_info(f"Запуск API на {host}:{port}...", type_msg=TypeMsg.INFO)

    config = uvicorn.Config(
        create_app(),
        host=host,
        port=port,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    # Сигналы обрабатываем сами
    server.install_signal_handlers = lambda: None
    setup_signal_handlers(server)

    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def main() -> None:
    """Главная функция запуска."""
    setup_logging()

    await log_info(
        f"{settings.system.PROJECT_NAME} v{settings.system.VERSION} ({settings.system.ENVIRONMENT})",
        type_msg=TypeMsg.INFO,
    )

    try:
        await run_api()
    except KeyboardInterrupt:
        await log_info("Получен сигнал остановки (Ctrl+C)", type_msg=TypeMsg.INFO)
    except Exception as e:
        await log_error(f"Критическая ошибка: {e}", exc_info=True)
        raise
    finally:
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print(f"""
Mindelo Ride v{settings.system.VERSION}: API заказа поездок

Использование:
    python main.py

Настройки:
    config/config.json     основная конфигурация
    .env                   секреты (JWT_SECRET, SEED_ADMIN_PASSWORD, SEED_USER_PASSWORD)

Переменные окружения:
    API_HOST, API_PORT, LOG_LEVEL, ENVIRONMENT, BCRYPT_ROUNDS, SEED_DEMO_DATA
    """)


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1].lower() in ("--help", "-h"):
        print_usage()
        sys.exit(0)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
