import asyncio
from typing import Optional

import asyncpg


class BootstrapError(Exception):
    """Базовая ошибка бутстрапа. Оригинальное исключение лежит в __cause__."""

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase

    def __str__(self):
        message = super().__str__()
        if self.phase:
            return f"[{self.phase}] {message}"
        return message


class DatabaseConnectionError(BootstrapError):
    """Сервер недоступен, неверные учетные данные или БД пропала."""


class DatabasePermissionError(BootstrapError):
    """Не хватает прав на CREATE DATABASE / CREATE TABLE / INSERT."""


class ConstraintViolationError(BootstrapError):
    """Нарушение ограничения. Все вставки идут с ON CONFLICT, так что это баг в логике."""


class UnknownBootstrapError(BootstrapError):
    pass


class BootstrapConfigurationError(BootstrapError):
    """Настройки из окружения не собрались: кривой DB_NAME, таймаут, seed-файл и т.п."""


# Порядок важен: проверяем сверху вниз, первый совпавший класс побеждает
ERROR_MAP = (
    (asyncpg.exceptions.InsufficientPrivilegeError, DatabasePermissionError),
    (asyncpg.exceptions.IntegrityConstraintViolationError, ConstraintViolationError),
    (asyncpg.exceptions.PostgresConnectionError, DatabaseConnectionError),
    (asyncpg.exceptions.InvalidAuthorizationSpecificationError, DatabaseConnectionError),
    (asyncpg.exceptions.CannotConnectNowError, DatabaseConnectionError),
    (asyncpg.exceptions.InvalidCatalogNameError, DatabaseConnectionError),
    (asyncpg.exceptions.ConnectionDoesNotExistError, DatabaseConnectionError),
    (asyncio.TimeoutError, DatabaseConnectionError),
    (OSError, DatabaseConnectionError),
)


def classify_error(exc: BaseException, phase: Optional[str] = None) -> BootstrapError:
    """Превращает исключение драйвера в одну из ошибок бутстрапа."""
    if isinstance(exc, BootstrapError):
        if exc.phase is None:
            exc.phase = phase
        return exc

    error_cls = UnknownBootstrapError
    for source_cls, target_cls in ERROR_MAP:
        if isinstance(exc, source_cls):
            error_cls = target_cls
            break

    error = error_cls(f"{type(exc).__name__}: {exc}", phase=phase)
    error.__cause__ = exc
    return error
