# src/libs/price-common/price_common/monitoring.py
from prometheus_client import Counter, Histogram

# Product store calls, timed by price_common.utils.async_timed
DB_OPERATION_LATENCY_SECONDS = Histogram(
    "product_store_operation_latency_seconds",
    "Latency of product store operations in seconds",
    labelnames=("repository", "method"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5),
)

# Producer delivery reports
KAFKA_MESSAGES_PUBLISHED_TOTAL = Counter(
    "kafka_messages_published_total",
    "Messages acknowledged by the Kafka broker",
    labelnames=("topic",),
)
KAFKA_PUBLISH_ERRORS_TOTAL = Counter(
    "kafka_publish_errors_total",
    "Messages the Kafka broker failed to acknowledge",
    labelnames=("topic", "error"),
)

# How each price change event was resolved
PRICE_UPDATE_OUTCOMES_TOTAL = Counter(
    "price_update_outcomes_total",
    "Product price change events handled, by outcome",
    labelnames=("outcome",),
)


def observe_kafka_published(topic: str) -> None:
    KAFKA_MESSAGES_PUBLISHED_TOTAL.labels(topic=topic).inc()


def observe_kafka_publish_error(topic: str, error: str) -> None:
    KAFKA_PUBLISH_ERRORS_TOTAL.labels(topic=topic, error=error).inc()


def observe_price_update_outcome(outcome: str) -> None:
    PRICE_UPDATE_OUTCOMES_TOTAL.labels(outcome=outcome).inc()
