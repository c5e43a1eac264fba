# src/services/price_update_service/app/clients/product_price_changes_client.py
import logging
from typing import Optional

from price_common.config import KAFKA_PRODUCT_PRICE_CHANGES_TOPIC
from price_common.events import ProductPriceChangedEvent
from price_common.kafka_utils import KafkaProducer, get_kafka_producer
from price_common.logging_utils import generate_correlation_id

logger = logging.getLogger(__name__)


class ProductPriceChangesClient:
    """
    Publishes product price change events, keyed by product code so every
    change for one product lands on the same partition in publish order.
    """
    def __init__(self, producer: Optional[KafkaProducer] = None, topic: str = KAFKA_PRODUCT_PRICE_CHANGES_TOPIC):
        self._producer = producer or get_kafka_producer()
        self.topic = topic

    def send(self, product_code: str, event: ProductPriceChangedEvent, correlation_id: Optional[str] = None):
        correlation_id = correlation_id or generate_correlation_id("PUB")
        self._producer.publish_message(
            topic=self.topic,
            key=product_code,
            value=event.model_dump(mode="json", by_alias=True),
            headers=[("correlation_id", correlation_id.encode("utf-8"))],
        )
        logger.info(
            f"Published price change for product '{product_code}' to '{self.topic}'.",
            extra={"product_code": product_code, "correlation_id": correlation_id},
        )

    def flush(self, timeout: int = 10):
        return self._producer.flush(timeout)
