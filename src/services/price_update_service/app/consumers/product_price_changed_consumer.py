# src/services/price_update_service/app/consumers/product_price_changed_consumer.py
import logging
from typing import Optional

from confluent_kafka import Message
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import async_sessionmaker
from tenacity import (
    AsyncRetrying, stop_after_attempt, wait_exponential,
    before_sleep_log, retry_if_exception_type,
)
from tenacity.wait import wait_base

from price_common.config import PRICE_UPDATE_MAX_ATTEMPTS
from price_common.db import AsyncSessionLocal
from price_common.kafka_consumer import BaseConsumer
from price_common.exceptions import RetryableConsumerError
from price_common.monitoring import observe_price_update_outcome
from ..core.price_update_handler import PriceUpdateHandler, PriceUpdateOutcome, PriceUpdateResult
from ..repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

# Connectivity and constraint failures from the product store. These are
# worth another attempt; everything else is treated as terminal.
TRANSIENT_STORE_ERRORS = (DBAPIError, OSError, TimeoutError)


class ProductPriceChangedConsumer(BaseConsumer):
    """
    Consumes product price change events and applies them to the product store.

    - APPLIED / SKIPPED  -> offset committed
    - REJECTED           -> sent to the DLQ, offset committed
    - store failure      -> retried in-process; once retries are exhausted a
                            RetryableConsumerError leaves the offset uncommitted
                            so Kafka redelivers the message
    """
    def __init__(
        self,
        *args,
        session_factory: Optional[async_sessionmaker] = None,
        max_attempts: int = PRICE_UPDATE_MAX_ATTEMPTS,
        retry_wait: Optional[wait_base] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._session_factory = session_factory or AsyncSessionLocal
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    async def process_message(self, msg: Message):
        key = msg.key().decode('utf-8') if msg.key() else "NoKey"
        event_id = f"{msg.topic()}-{msg.partition()}-{msg.offset()}"
        logger.info("ProductPriceChangedConsumer received message", extra={"key": key, "event_id": event_id})

        try:
            result = await self._apply_with_retry(msg.value())
        except TRANSIENT_STORE_ERRORS as e:
            logger.warning(
                f"Store error for product '{key}' after {self._max_attempts} attempts. Message will be redelivered.",
                extra={"event_id": event_id},
            )
            raise RetryableConsumerError(f"Database error: {e}") from e

        observe_price_update_outcome(result.outcome.value)

        if result.outcome is PriceUpdateOutcome.REJECTED:
            logger.error(
                "Message validation failed. Sending to DLQ.",
                extra={"key": key, "event_id": event_id},
            )
            await self._send_to_dlq_async(msg, ValueError(result.reason))

        return result

    async def _apply_with_retry(self, payload: bytes) -> PriceUpdateResult:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(TRANSIENT_STORE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                result = await self._apply(payload)
        return result

    async def _apply(self, payload: bytes) -> PriceUpdateResult:
        async with self._session_factory() as db:
            async with db.begin():
                handler = PriceUpdateHandler(ProductRepository(db))
                return await handler.handle_payload(payload)
