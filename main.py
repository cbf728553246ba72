import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI


# --- 1. Импортируем наши модули ---
# ВАЖНО: config должен импортироваться первым. Он сам загрузит нужный .env или .env.test файл.
import config
from bootstrap import BootstrapResult, bootstrap
from errors import BootstrapConfigurationError
from routers.health import router as health_router


config.configure_logging()
logger = logging.getLogger(__name__)


async def run_bootstrap(app: FastAPI, settings: config.BootstrapSettings) -> BootstrapResult:
    """Запускает бутстрап и сохраняет результат в app.state для /health/ready."""
    result = await bootstrap(settings)
    app.state.bootstrap_result = result
    if not result.ok:
        # Политика по умолчанию: залогировать и продолжить обслуживать запросы
        logger.warning('Service continues without a verified database schema (failed at %s)', result.failed_phase)
    return result


# --- 2. Управление жизненным циклом приложения ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    При старте запускает бутстрап БД.

    fail_fast=True: ждем бутстрап прямо здесь и при ошибке роняем старт приложения.
    fail_fast=False: бутстрап идет фоновой задачей, сервер сразу принимает запросы,
    а /health/ready отвечает 503, пока задача не закончится.
    """
    app.state.bootstrap_result = None
    app.state.bootstrap_task = None
    # Сам флаг политики читаем отдельно: если он кривой, выбрать политику нельзя и старт падает
    fail_fast = config.env_flag('BOOTSTRAP_FAIL_FAST', False)

    try:
        settings = config.get_bootstrap_settings()
    except BootstrapConfigurationError as e:
        if fail_fast:
            raise
        # Ошибка настроек идет тем же путем "залогировать и продолжить", что и ошибки БД
        logger.error('Database bootstrap is not configured: %s', e, exc_info=e)
        app.state.bootstrap_result = BootstrapResult(failed_phase=e.phase, error=e)
    else:
        if settings.fail_fast:
            result = await run_bootstrap(app, settings)
            result.raise_for_error()
        else:
            app.state.bootstrap_task = asyncio.create_task(run_bootstrap(app, settings))

    yield

    # Бутстрап не прерывается посреди шага, но если сервер гасят раньше - отменяем задачу
    task = app.state.bootstrap_task
    if task is not None and not task.done():
        logger.info('Shutting down before database bootstrap finished, cancelling')
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


# --- 3. Создаем и настраиваем приложение ---
app = FastAPI(
    title='ProjectZ API Service',
    description='Сервис, который при старте готовит базу данных: создает БД, таблицы и начальные данные.',
    version='1.0.0',
    lifespan=lifespan,
)

app.include_router(health_router)


@app.get('/', tags=['Root'])
def read_root():
    """Простой эндпоинт для проверки статуса API."""
    return {'status': 'API is running'}
