# src/services/price_update_service/app/main.py
import logging
import asyncio

from price_common.logging_utils import setup_logging
from .consumer_manager import ConsumerManager

setup_logging()
logger = logging.getLogger(__name__)


async def main():
    manager = ConsumerManager()
    logger.info("Price Update Service starting", extra={"consumers": len(manager.consumers)})
    try:
        await manager.run()
    except Exception:
        logger.critical("Price Update Service stopped on an unhandled error", exc_info=True)
        raise
    logger.info("Price Update Service stopped cleanly.")


if __name__ == "__main__":
    asyncio.run(main())
