# Управление соединением с базой данных.
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from config import DatabaseSettings


logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Экранирует имя как идентификатор Postgres: "name", внутренние кавычки удваиваются."""
    return '"' + name.replace('"', '""') + '"'


# Пула нет: бутстрап запускается один раз, каждая фаза держит свое соединение.
# async with гарантирует закрытие соединения на любом пути выхода, в том числе при ошибке.
@asynccontextmanager
async def open_connection(settings: DatabaseSettings, database: Optional[str] = None) -> AsyncIterator[asyncpg.Connection]:
    target = database or settings.database
    logger.debug('Opening connection to %s:%s/%s', settings.host, settings.port, target)
    conn = await asyncpg.connect(**settings.connect_kwargs(target))
    try:
        yield conn
    finally:
        await conn.close()
        logger.debug('Connection to %s closed', target)
