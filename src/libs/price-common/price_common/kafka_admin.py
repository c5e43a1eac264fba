# src/libs/price-common/price_common/kafka_admin.py
import logging
from typing import Dict, Iterable, List, Optional

from confluent_kafka.admin import AdminClient, NewTopic
from confluent_kafka import KafkaError, KafkaException
from tenacity import retry, stop_after_attempt, wait_fixed, before_log, retry_if_exception_type

from .config import KAFKA_BOOTSTRAP_SERVERS

logger = logging.getLogger(__name__)

@retry(
    stop=stop_after_attempt(15), # Total wait time: 15 attempts * 4s = 60s
    wait=wait_fixed(4),
    retry=retry_if_exception_type(KafkaException),
    before=before_log(logger, logging.INFO),
    reraise=True,
)
def ensure_topics_exist(required_topics: List[str], bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS):
    """
    Connects to Kafka and verifies that a list of required topics exists.

    Retries while topics are missing, which covers orchestrated environments
    where a topic-creator job may still be running. Gives up with the last
    KafkaException once the attempts are exhausted.
    """
    logger.info(f"Verifying existence of Kafka topics: {required_topics}...")

    admin_client = AdminClient({'bootstrap.servers': bootstrap_servers})

    try:
        cluster_metadata = admin_client.list_topics(timeout=5)
        existing_topics = cluster_metadata.topics.keys()

        missing_topics = [topic for topic in required_topics if topic not in existing_topics]
        if missing_topics:
            raise KafkaException(f"Required topics are not yet available: {missing_topics}")

        logger.info("All required Kafka topics found.")

    except KafkaException as e:
        logger.warning(f"Kafka error while verifying topics: {e}. Retrying...")
        raise


def create_topics(
    admin_client: AdminClient,
    topics: Iterable[str],
    num_partitions: int = 1,
    replication_factor: int = 1,
    config: Optional[Dict[str, str]] = None,
) -> List[str]:
    """
    Creates any of the given topics that do not exist yet.
    Returns the names of the topics that were created by this call.
    """
    existing_topics = admin_client.list_topics(timeout=10).topics

    new_topic_list = [
        NewTopic(
            topic,
            num_partitions=num_partitions,
            replication_factor=replication_factor,
            config=config or {},
        )
        for topic in topics if topic not in existing_topics
    ]

    if not new_topic_list:
        logger.info("All topics already exist. No action taken.")
        return []

    logger.info(f"Attempting to create {len(new_topic_list)} new topics...")
    futures = admin_client.create_topics(new_topic_list)

    created = []
    for topic, future in futures.items():
        try:
            future.result()  # The result itself is None on success
            logger.info(f"Topic '{topic}' created successfully.")
            created.append(topic)
        except KafkaException as e:
            if e.args[0].code() == KafkaError.TOPIC_ALREADY_EXISTS:
                logger.warning(f"Topic '{topic}' already exists.")
            else:
                logger.error(f"Failed to create topic '{topic}': {e}")
                raise
    return created
