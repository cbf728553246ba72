import asyncio
import logging
import sys

import config
from bootstrap import bootstrap
from errors import BootstrapConfigurationError


logger = logging.getLogger(__name__)


async def init_db() -> int:
    """Одноразовый запуск бутстрапа вне веб-сервера. Возвращает код выхода."""
    try:
        settings = config.get_bootstrap_settings()
    except BootstrapConfigurationError as e:
        logger.error('Database bootstrap is not configured: %s', e, exc_info=e)
        return 1
    result = await bootstrap(settings)
    if not result.ok:
        return 1
    logger.info('Database %s is ready', settings.database.database)
    return 0


if __name__ == "__main__":
    config.configure_logging()
    sys.exit(asyncio.run(init_db()))
