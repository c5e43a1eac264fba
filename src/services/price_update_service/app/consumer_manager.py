# src/services/price_update_service/app/consumer_manager.py
import logging
import signal
import asyncio
from typing import List

import uvicorn

from price_common.config import (
    KAFKA_BOOTSTRAP_SERVERS,
    KAFKA_PRODUCT_PRICE_CHANGES_TOPIC,
    KAFKA_PRICE_UPDATE_DLQ_TOPIC,
    KAFKA_PRICE_UPDATE_GROUP_ID,
    PRICE_UPDATE_MAX_ATTEMPTS,
    WEB_HOST,
    WEB_PORT,
)
from price_common.kafka_admin import ensure_topics_exist
from price_common.kafka_consumer import BaseConsumer
from .consumers.product_price_changed_consumer import ProductPriceChangedConsumer
from .web import app as web_app
from .monitoring import CONSUMER_METRICS

logger = logging.getLogger(__name__)

SERVICE_PREFIX = "PRC"


def build_consumers() -> List[BaseConsumer]:
    return [
        ProductPriceChangedConsumer(
            bootstrap_servers=KAFKA_BOOTSTRAP_SERVERS,
            topic=KAFKA_PRODUCT_PRICE_CHANGES_TOPIC,
            group_id=KAFKA_PRICE_UPDATE_GROUP_ID,
            dlq_topic=KAFKA_PRICE_UPDATE_DLQ_TOPIC,
            service_prefix=SERVICE_PREFIX,
            metrics=CONSUMER_METRICS,
            max_attempts=PRICE_UPDATE_MAX_ATTEMPTS,
        )
    ]


class ConsumerManager:
    """
    Runs the price change consumer next to the probe/metrics web server and
    stops both on SIGINT or SIGTERM.
    """
    def __init__(self):
        self.consumers = build_consumers()
        self.web_app = web_app
        self.tasks: List[asyncio.Task] = []
        self._shutdown_event = asyncio.Event()

    def _signal_handler(self, signum, frame):
        logger.info("Shutdown signal received", extra={"signal": signal.Signals(signum).name})
        self._shutdown_event.set()

    async def run(self):
        # Refuse to start consuming until the topics are there
        ensure_topics_exist([consumer.topic for consumer in self.consumers])

        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, self._signal_handler)

        server = uvicorn.Server(uvicorn.Config(self.web_app, host=WEB_HOST, port=WEB_PORT, log_config=None))

        self.tasks = [asyncio.create_task(consumer.run()) for consumer in self.consumers]
        self.tasks.append(asyncio.create_task(server.serve()))
        logger.info(f"Consuming from {[c.topic for c in self.consumers]}; probes on port {WEB_PORT}.")

        await self._shutdown_event.wait()

        logger.info("Stopping consumers and web server...")
        for consumer in self.consumers:
            consumer.shutdown()
        server.should_exit = True

        results = await asyncio.gather(*self.tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"A task ended with an error during shutdown: {result!r}")
        logger.info("All consumer and web server tasks have been shut down.")
