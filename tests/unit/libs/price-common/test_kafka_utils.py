# tests/unit/libs/price-common/test_kafka_utils.py
import pytest
from decimal import Decimal
from unittest.mock import patch, MagicMock, ANY

from price_common.kafka_utils import KafkaProducer

@patch('price_common.kafka_utils.Producer')
def test_kafka_producer_initialization(MockProducer):
    """
    Tests that the KafkaProducer is initialized with the correct, production-safe configuration.
    """
    # ACT
    KafkaProducer(bootstrap_servers="mock:9092")

    # ASSERT
    MockProducer.assert_called_once()
    config = MockProducer.call_args[0][0]

    assert config['bootstrap.servers'] == "mock:9092"
    assert config['client.id'] == "price-update-producer"
    assert config['enable.idempotence'] is True
    assert config['acks'] == "all"
    assert config['max.in.flight.requests.per.connection'] == 5
    assert config['retries'] == 5

@patch('price_common.kafka_utils.Producer')
def test_publish_message_calls_produce(MockProducer):
    """
    Tests that publish_message encodes the key and JSON value before handing them to the client.
    """
    # ARRANGE
    mock_confluent_producer = MagicMock()
    MockProducer.return_value = mock_confluent_producer

    producer = KafkaProducer()

    # ACT
    producer.publish_message(
        topic="product-price-changes",
        key="P100",
        value={"productCode": "P100", "price": Decimal("14.50")},
        headers=[("correlation_id", b"123")]
    )

    # ASSERT
    mock_confluent_producer.produce.assert_called_once_with(
        "product-price-changes",
        key=b"P100",
        value=b'{"productCode": "P100", "price": "14.50"}',
        headers=[("correlation_id", b"123")],
        callback=ANY
    )
    mock_confluent_producer.poll.assert_called_with(0)

@patch('price_common.kafka_utils.Producer')
def test_publish_message_without_producer_raises(MockProducer):
    producer = KafkaProducer()
    producer.producer = None

    with pytest.raises(RuntimeError):
        producer.publish_message(topic="t", key="k", value={})

@patch('price_common.kafka_utils.Producer')
def test_delivery_report_handles_success(MockProducer):
    """
    Tests that the internal delivery_report callback correctly handles a successful delivery.
    """
    # ARRANGE
    mock_confluent_producer = MagicMock()
    MockProducer.return_value = mock_confluent_producer
    producer = KafkaProducer()

    producer.publish_message(topic="t", key="k", value={})
    callback = mock_confluent_producer.produce.call_args.kwargs['callback']

    mock_msg = MagicMock()
    mock_msg.topic.return_value = "t"
    mock_msg.key.return_value = b"k"

    # ACT & ASSERT
    with patch('price_common.kafka_utils.logger') as mock_logger, \
         patch('price_common.kafka_utils.observe_kafka_published') as mock_observe:
        callback(None, mock_msg)
        mock_logger.info.assert_called_with("Delivered message with key 'k'", extra=ANY)
        mock_observe.assert_called_once_with("t")

@patch('price_common.kafka_utils.Producer')
def test_delivery_report_handles_failure(MockProducer):
    """
    Tests that the internal delivery_report callback correctly handles a failed delivery.
    """
    # ARRANGE
    mock_confluent_producer = MagicMock()
    MockProducer.return_value = mock_confluent_producer
    producer = KafkaProducer()

    producer.publish_message(topic="t", key="k", value={})
    callback = mock_confluent_producer.produce.call_args.kwargs['callback']

    mock_msg = MagicMock()
    mock_msg.topic.return_value = "t"
    mock_msg.key.return_value = b"k"
    err = MagicMock()
    err.__str__.return_value = "Mock Kafka Error"

    # ACT & ASSERT
    with patch('price_common.kafka_utils.logger') as mock_logger, \
         patch('price_common.kafka_utils.observe_kafka_publish_error') as mock_observe:
        callback(err, mock_msg)
        mock_logger.error.assert_called_with("Delivery to t failed for key 'k': Mock Kafka Error")
        mock_observe.assert_called_once_with("t", "Mock Kafka Error")

@patch('price_common.kafka_utils.Producer')
def test_flush_delegates_to_client(MockProducer):
    mock_confluent_producer = MagicMock()
    mock_confluent_producer.flush.return_value = 0
    MockProducer.return_value = mock_confluent_producer

    assert KafkaProducer().flush(timeout=3) == 0
    mock_confluent_producer.flush.assert_called_once_with(3)

@patch('price_common.kafka_utils.Producer')
def test_kafka_producer_accepts_config_overrides(MockProducer):
    KafkaProducer(bootstrap_servers="mock:9092", client_id="tool", **{"linger.ms": 0})

    config = MockProducer.call_args[0][0]
    assert config['linger.ms'] == 0
    assert config['client.id'] == "tool"
    assert config['enable.idempotence'] is True
