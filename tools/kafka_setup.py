# tools/kafka_setup.py
import logging
import os
import sys

from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient
from tenacity import retry, stop_after_attempt, wait_fixed, before_sleep_log, retry_if_exception_type

# Runnable from a plain checkout as `python tools/kafka_setup.py`
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.join(project_root, 'src', 'libs', 'price-common'))

from price_common.logging_utils import setup_logging
from price_common.config import (
    KAFKA_BOOTSTRAP_SERVERS,
    KAFKA_PRODUCT_PRICE_CHANGES_TOPIC,
    KAFKA_PRICE_UPDATE_DLQ_TOPIC,
)
from price_common.kafka_admin import create_topics

logger = logging.getLogger(__name__)

# Use a replication factor of 3 or more outside local development.
REPLICATION_FACTOR = int(os.getenv("KAFKA_REPLICATION_FACTOR", 1))
# Bounds how many consumers in the group can work in parallel; ordering per product code holds regardless.
NUM_PARTITIONS = int(os.getenv("KAFKA_NUM_PARTITIONS", 3))

TOPIC_CONFIG = {
    "min.insync.replicas": os.getenv("KAFKA_MIN_INSYNC_REPLICAS", "1"),
    "unclean.leader.election.enable": "false",
    "retention.ms": str(7 * 24 * 60 * 60 * 1000),
}

TOPICS_TO_CREATE = [
    KAFKA_PRODUCT_PRICE_CHANGES_TOPIC,
    KAFKA_PRICE_UPDATE_DLQ_TOPIC,
]


@retry(
    stop=stop_after_attempt(10),
    wait=wait_fixed(5),
    retry=retry_if_exception_type(KafkaException),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
def wait_for_kafka(admin_client: AdminClient):
    admin_client.list_topics(timeout=5)
    logger.info("Connected to Kafka.")


def main(bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS):
    """Creates the price change topic and its dead-letter topic if they are missing."""
    admin_client = AdminClient({'bootstrap.servers': bootstrap_servers})
    wait_for_kafka(admin_client)

    created = create_topics(
        admin_client,
        TOPICS_TO_CREATE,
        num_partitions=NUM_PARTITIONS,
        replication_factor=REPLICATION_FACTOR,
        config=TOPIC_CONFIG,
    )
    logger.info("Kafka topic setup complete.", extra={"created_topics": created})


if __name__ == '__main__':
    setup_logging()
    try:
        main()
    except KafkaException:
        logger.critical("Could not reach Kafka; topics were not created.", exc_info=True)
        sys.exit(1)
