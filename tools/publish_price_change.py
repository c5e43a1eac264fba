# tools/publish_price_change.py
import argparse
import logging
import os
import sys

# Runnable from a plain checkout as `python tools/publish_price_change.py`
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path[:0] = [project_root, os.path.join(project_root, 'src', 'libs', 'price-common')]

from price_common.config import KAFKA_PRODUCT_PRICE_CHANGES_TOPIC
from price_common.events import ProductPriceChangedEvent
from price_common.logging_utils import setup_logging
from src.services.price_update_service.app.clients.product_price_changes_client import ProductPriceChangesClient

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    parser = argparse.ArgumentParser(description="Publish a product price change event.")
    parser.add_argument("product_code", help="Code of the product whose price changed.")
    parser.add_argument("price", help="New price, e.g. 14.50.")
    parser.add_argument("--topic", default=KAFKA_PRODUCT_PRICE_CHANGES_TOPIC, help="Target topic.")
    parser.add_argument("--correlation-id", default=None, help="Correlation ID to attach as a header.")
    args = parser.parse_args()

    event = ProductPriceChangedEvent(productCode=args.product_code, price=args.price)

    client = ProductPriceChangesClient(topic=args.topic)
    client.send(event.product_code, event, correlation_id=args.correlation_id)
    remaining = client.flush(timeout=10)
    if remaining:
        logger.error(f"{remaining} message(s) were not delivered before the flush timeout.")
        sys.exit(1)


if __name__ == "__main__":
    main()
