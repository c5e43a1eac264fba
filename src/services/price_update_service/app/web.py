# src/services/price_update_service/app/web.py
from fastapi import FastAPI

from price_common.health import create_health_router
from .monitoring import setup_metrics


def create_app() -> FastAPI:
    """
    The service has no business API; the web app only serves probes and
    Prometheus metrics next to the consumer.
    """
    web_app = FastAPI(
        title="Price Update Service",
        description="Health probes and metrics for the product price update consumer.",
        version="1.0.0",
    )
    setup_metrics(web_app)
    # Ready only when both the product store and Kafka answer
    web_app.include_router(create_health_router('db', 'kafka'))
    return web_app


app = create_app()
