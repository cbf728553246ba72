# Бутстрап БД: база -> таблицы -> начальные данные.
# Каждый шаг идемпотентен, поэтому запуск на каждом старте процесса безопасен.
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import asyncpg

from config import BootstrapSettings, DatabaseSettings
from database import open_connection, quote_identifier
from errors import BootstrapError, classify_error
from models import (
    DATABASE_EXISTS_SQL,
    INSERT_PRODUCT_SQL,
    INSERT_USER_SQL,
    TABLES,
    SeedData,
)


logger = logging.getLogger(__name__)

PHASE_ENSURE_DATABASE = 'ensure_database'
PHASE_CREATE_TABLES = 'create_tables'
PHASE_SEED_DATA = 'seed_data'


@dataclass
class BootstrapResult:
    completed_phases: List[str] = field(default_factory=list)
    failed_phase: Optional[str] = None
    error: Optional[BootstrapError] = None
    database_created: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        """Пробрасывает ошибку, если бутстрап не удался. Вызывает хост, если хочет fail-fast."""
        if self.error is not None:
            raise self.error


async def ensure_database_exists(settings: DatabaseSettings) -> bool:
    """
    Создает целевую БД, если ее нет. Возвращает True, если база была создана.
    Подключаемся к служебной БД: целевой на этом шаге может еще не быть.
    """
    async with open_connection(settings, settings.admin_database) as conn:
        exists = await conn.fetchval(DATABASE_EXISTS_SQL, settings.database)
        if exists:
            logger.info('Database already exists.')
            return False

        logger.info('Creating database %s ...', settings.database)
        try:
            # CREATE DATABASE не принимает параметры, поэтому имя экранируем сами
            await conn.execute(f"CREATE DATABASE {quote_identifier(settings.database)}")
        except asyncpg.exceptions.DuplicateDatabaseError:
            # Соседний экземпляр сервиса успел создать базу между проверкой и созданием
            logger.info('Database %s was created concurrently.', settings.database)
            return False

        logger.info('Database created successfully.')
        return True


async def create_tables(settings: DatabaseSettings) -> None:
    """Создает таблицы users и products, если их еще нет."""
    async with open_connection(settings) as conn:
        for table_name, ddl in TABLES.items():
            logger.debug('Checking/Creating table %s', table_name)
            await conn.execute(ddl)
    logger.info('Database tables created or verified.')


async def seed_initial_data(settings: DatabaseSettings, seed: SeedData) -> None:
    """Заполняет таблицы начальными строками. Уже существующие строки пропускаются."""
    async with open_connection(settings) as conn:
        if seed.users:
            await conn.executemany(
                INSERT_USER_SQL,
                [(user.username, user.email) for user in seed.users],
            )
        if seed.products:
            await conn.executemany(
                INSERT_PRODUCT_SQL,
                [(product.name, product.price) for product in seed.products],
            )
    logger.info(
        'Initial data seeded into the database (%d users, %d products checked).',
        len(seed.users), len(seed.products),
    )


async def bootstrap(settings: BootstrapSettings) -> BootstrapResult:
    """
    Выполняет три шага строго по порядку. Следующий шаг запускается только после успеха предыдущего.

    Ошибки не пробрасываются: любая ошибка любого шага ловится здесь один раз,
    логируется и возвращается в BootstrapResult. Что делать дальше, решает вызывающий код.
    """
    db = settings.database
    result = BootstrapResult()
    phase = PHASE_ENSURE_DATABASE

    try:
        logger.info('Initializing database %s ...', db.safe_dsn)
        result.database_created = await ensure_database_exists(db)
        result.completed_phases.append(phase)

        phase = PHASE_CREATE_TABLES
        await create_tables(db)
        result.completed_phases.append(phase)

        if settings.seed_enabled:
            phase = PHASE_SEED_DATA
            await seed_initial_data(db, settings.seed)
            result.completed_phases.append(phase)
        else:
            logger.info('Seeding is disabled, skipping initial data.')

    except Exception as e:
        result.failed_phase = phase
        result.error = classify_error(e, phase)
        logger.error('Database bootstrap failed: %s', result.error, exc_info=e)
        return result

    logger.info('Database bootstrap finished.')
    return result
