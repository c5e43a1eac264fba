# tests/unit/services/price_update_service/clients/test_product_price_changes_client.py
from decimal import Decimal
from unittest.mock import MagicMock

from price_common.events import ProductPriceChangedEvent
from src.services.price_update_service.app.clients.product_price_changes_client import ProductPriceChangesClient


def test_send_publishes_event_keyed_by_product_code():
    """
    GIVEN a client over a mocked producer
    WHEN a price change for P100 is sent
    THEN it is published to the price change topic, keyed by product code, as camelCase JSON.
    """
    # Arrange
    producer = MagicMock()
    client = ProductPriceChangesClient(producer=producer)

    # Act
    client.send("P100", ProductPriceChangedEvent(product_code="P100", price=Decimal("14.50")), correlation_id="corr-1")

    # Assert
    producer.publish_message.assert_called_once_with(
        topic="product-price-changes",
        key="P100",
        value={"productCode": "P100", "price": 14.5},
        headers=[("correlation_id", b"corr-1")],
    )


def test_send_generates_correlation_id_when_missing():
    producer = MagicMock()
    client = ProductPriceChangesClient(producer=producer, topic="custom-topic")

    client.send("P200", ProductPriceChangedEvent(product_code="P200", price=Decimal("1")))

    kwargs = producer.publish_message.call_args.kwargs
    assert kwargs["topic"] == "custom-topic"
    headers = dict(kwargs["headers"])
    assert headers["correlation_id"].decode("utf-8").startswith("PUB:")


def test_flush_delegates_to_producer():
    producer = MagicMock()
    producer.flush.return_value = 0

    assert ProductPriceChangesClient(producer=producer).flush(timeout=2) == 0
    producer.flush.assert_called_once_with(2)
