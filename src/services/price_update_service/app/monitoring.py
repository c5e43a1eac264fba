# src/services/price_update_service/app/monitoring.py
from prometheus_fastapi_instrumentator import Instrumentator
from prometheus_client import Counter, Histogram

CONSUMER_LABELS = ["topic", "consumer_group"]

# Keys match what BaseConsumer looks up in its `metrics` mapping
CONSUMER_METRICS = {
    "processed": Counter(
        "price_update_messages_processed_total",
        "Price change messages committed after being applied or skipped.",
        CONSUMER_LABELS,
    ),
    "dlqd": Counter(
        "price_update_messages_dlqd_total",
        "Price change messages forwarded to the dead-letter topic.",
        CONSUMER_LABELS,
    ),
    "latency": Histogram(
        "price_update_message_latency_seconds",
        "Time spent handling one price change message, commit included.",
        CONSUMER_LABELS,
        buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
    ),
}


def setup_metrics(app) -> None:
    """Instruments the FastAPI app and serves the process registry on /metrics."""
    Instrumentator(excluded_handlers=["/metrics", "/health/live"]).instrument(app).expose(app)
