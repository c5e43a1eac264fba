# src/libs/price-common/price_common/kafka_utils.py
import logging
import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from confluent_kafka import Producer, KafkaException

from .config import KAFKA_BOOTSTRAP_SERVERS
from .monitoring import observe_kafka_published, observe_kafka_publish_error

logger = logging.getLogger(__name__)

Headers = List[Tuple[str, bytes]]

# Idempotence plus acks=all keeps broker-side retries from duplicating or
# reordering messages that share a key.
PRODUCER_DEFAULTS: Dict[str, Any] = {
    "enable.idempotence": True,
    "acks": "all",
    "retries": 5,
    "max.in.flight.requests.per.connection": 5,
    "linger.ms": 5,
    "batch.num.messages": 1000,
    "delivery.timeout.ms": 120000,
    "request.timeout.ms": 30000,
    "socket.keepalive.enable": True,
}


def _describe_key(raw: Optional[bytes]) -> str:
    if not raw:
        return ""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return "<binary>"


class KafkaProducer:
    """
    JSON producer over confluent_kafka.Producer. Messages are keyed so that
    Kafka keeps every message for one key on one partition, in send order.
    """

    def __init__(self, bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS, client_id: str = "price-update-producer", **overrides):
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        conf = {**PRODUCER_DEFAULTS, **overrides, "bootstrap.servers": bootstrap_servers, "client.id": client_id}
        try:
            self.producer = Producer(conf)
        except KafkaException as e:
            logger.error(f"Could not create Kafka producer for {bootstrap_servers}: {e}")
            raise
        logger.info(f"Kafka producer '{client_id}' created for brokers: {bootstrap_servers}")

    def _delivery_callback(self, topic: str) -> Callable:
        def on_delivery(err, msg):
            if err is not None:
                logger.error(f"Delivery to {msg.topic()} failed for key '{_describe_key(msg.key())}': {err}")
                observe_kafka_publish_error(topic, str(err))
                return
            logger.info(
                f"Delivered message with key '{_describe_key(msg.key())}'",
                extra={"topic": msg.topic(), "partition": msg.partition(), "offset": msg.offset()},
            )
            observe_kafka_published(topic)
        return on_delivery

    def publish_message(
        self,
        topic: str,
        key: Union[str, bytes],
        value: Dict[str, Any],
        headers: Optional[Headers] = None,
    ):
        """
        Queues `value` as JSON (Decimals and dates become strings). Delivery is
        asynchronous; call flush() to wait for the broker's acknowledgement.
        """
        if self.producer is None:
            raise RuntimeError("Kafka producer is not initialized.")

        self.producer.produce(
            topic,
            key=key.encode("utf-8") if isinstance(key, str) else key,
            value=json.dumps(value, default=str).encode("utf-8"),
            headers=list(headers or []),
            callback=self._delivery_callback(topic),
        )
        # Serve delivery callbacks of earlier messages
        self.producer.poll(0)

    def flush(self, timeout: float = 10) -> int:
        """Waits for queued messages and returns how many are still undelivered."""
        if self.producer is None:
            return 0
        return self.producer.flush(timeout)


_kafka_producer_instance: Optional[KafkaProducer] = None


def get_kafka_producer() -> KafkaProducer:
    global _kafka_producer_instance
    if _kafka_producer_instance is None:
        _kafka_producer_instance = KafkaProducer()
    return _kafka_producer_instance
