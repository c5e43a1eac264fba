# src/libs/price-common/price_common/kafka_consumer.py
import logging
import traceback
import asyncio
import functools
import threading
import time
import inspect
from datetime import datetime, timezone
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from confluent_kafka import Consumer, Message, TopicPartition

from .kafka_utils import get_kafka_producer, KafkaProducer
from .logging_utils import correlation_id_var, generate_correlation_id
from .exceptions import RetryableConsumerError

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "correlation_id"
POLL_TIMEOUT_SECONDS = 1.0


def _decode(raw: Optional[bytes]) -> Optional[str]:
    return raw.decode("utf-8", errors="replace") if raw else None


class BaseConsumer(ABC):
    """
    Poll loop for one topic with manual, per-message offset commits.

    Subclasses implement `process_message` (sync or async). Its outcome
    decides what happens to the offset:

    - returns                   -> commit
    - RetryableConsumerError    -> no commit; the partition is rewound so the
                                   message is polled again
    - any other exception       -> message copied to the DLQ topic, then commit

    `metrics`, when given, maps "processed", "dlqd" and "latency" to Prometheus
    collectors labelled by topic and consumer_group.
    """
    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
        group_id: str,
        dlq_topic: Optional[str] = None,
        service_prefix: str = "SVC",
        metrics: Optional[Dict] = None,
        producer: Optional[KafkaProducer] = None,
    ):
        self.topic = topic
        self.dlq_topic = dlq_topic
        self.service_prefix = service_prefix
        self._metrics = metrics
        self._consumer: Optional[Consumer] = None
        self._producer: Optional[KafkaProducer] = None
        self._consumer_config = {
            'bootstrap.servers': bootstrap_servers,
            'group.id': group_id,
            'auto.offset.reset': 'earliest',
            'enable.auto.commit': False,
            'session.timeout.ms': 30000,
            'heartbeat.interval.ms': 3000,
        }
        self._running = True
        self._assigned = threading.Event()

        if self.dlq_topic:
            self._producer = producer or get_kafka_producer()
            logger.info(f"Messages from '{self.topic}' that fail terminally go to '{self.dlq_topic}'.")

    @property
    def group_id(self) -> str:
        return self._consumer_config['group.id']

    @property
    def _metric_labels(self) -> Dict[str, str]:
        return {"topic": self.topic, "consumer_group": self.group_id}

    def _initialize_consumer(self):
        self._consumer = Consumer(self._consumer_config)
        self._consumer.subscribe([self.topic], on_assign=self._on_assign, on_revoke=self._on_revoke)
        logger.info(f"Subscribed to '{self.topic}' as group '{self.group_id}'.")

    def _on_assign(self, consumer, partitions):
        logger.info(f"Partitions assigned for '{self.topic}'", extra={"partitions": [p.partition for p in partitions]})
        self._assigned.set()

    def _on_revoke(self, consumer, partitions):
        logger.info(f"Partitions revoked for '{self.topic}'", extra={"partitions": [p.partition for p in partitions]})
        self._assigned.clear()

    async def wait_until_assigned(self, timeout: float = 30.0) -> bool:
        """Returns True once the group coordinator has handed this consumer its partitions."""
        return await asyncio.to_thread(self._assigned.wait, timeout)

    @abstractmethod
    def process_message(self, msg: Message):
        """Handles one message. May be a plain function or a coroutine function."""

    def _extract_correlation_id(self, msg: Message) -> str:
        for key, value in msg.headers() or []:
            if key == CORRELATION_ID_HEADER and value:
                return _decode(value)

        corr_id = generate_correlation_id(self.service_prefix)
        logger.warning(f"Message on '{msg.topic()}' carried no correlation id; using {corr_id}")
        return corr_id

    def _build_dlq_payload(self, msg: Message, error: Exception) -> Dict[str, Any]:
        return {
            "correlation_id": correlation_id_var.get(),
            "original_topic": msg.topic(),
            "original_key": _decode(msg.key()),
            "original_value": _decode(msg.value()),
            "error_timestamp": datetime.now(timezone.utc).isoformat(),
            "error_reason": str(error),
            "error_traceback": traceback.format_exc(),
        }

    async def _send_to_dlq_async(self, msg: Message, error: Exception):
        """
        Copies a failed message, with the error that sank it, to the DLQ topic.
        A failure to publish is logged; the caller still commits the offset.
        """
        if self._metrics:
            self._metrics["dlqd"].labels(**self._metric_labels).inc()

        if not self._producer or not self.dlq_topic:
            return

        try:
            payload = self._build_dlq_payload(msg, error)
            headers = list(msg.headers() or [])
            headers.append((CORRELATION_ID_HEADER, (payload["correlation_id"] or "").encode('utf-8')))

            self._producer.publish_message(
                topic=self.dlq_topic,
                key=payload["original_key"] or "NoKey",
                value=payload,
                headers=headers,
            )
            self._producer.flush(timeout=5)
            logger.warning(f"Message with key '{payload['original_key']}' sent to DLQ '{self.dlq_topic}'.")
        except Exception as e:
            logger.error(f"Could not publish message to DLQ '{self.dlq_topic}': {e}", exc_info=True)

    async def run(self):
        """Polls and handles messages until shutdown() is called or the consumer hits a fatal error."""
        self._initialize_consumer()
        loop = asyncio.get_running_loop()
        try:
            while self._running:
                msg = await loop.run_in_executor(None, self._consumer.poll, POLL_TIMEOUT_SECONDS)
                if msg is None:
                    continue

                error = msg.error()
                if error:
                    if error.fatal():
                        logger.error(f"Fatal consumer error on '{self.topic}': {error}. Stopping.")
                        break
                    logger.warning(f"Consumer error on '{self.topic}': {error}.")
                    continue

                await self._handle(msg, loop)
        finally:
            self._close()

    async def _handle(self, msg: Message, loop: asyncio.AbstractEventLoop):
        started = time.monotonic()
        committed_after_success = False
        token = correlation_id_var.set(correlation_id_var.get())
        try:
            correlation_id_var.set(self._extract_correlation_id(msg))
            if inspect.iscoroutinefunction(self.process_message):
                await self.process_message(msg)
            else:
                await loop.run_in_executor(None, functools.partial(self.process_message, msg))

            self._consumer.commit(message=msg, asynchronous=False)
            committed_after_success = True

        except RetryableConsumerError as e:
            logger.warning(f"Retryable error, offset {msg.offset()} left uncommitted: {e}")
            self._rewind(msg)

        except Exception as e:
            logger.error(f"Terminal error handling message from '{self.topic}': {e}", exc_info=True)
            await self._send_to_dlq_async(msg, e)
            self._consumer.commit(message=msg, asynchronous=False)

        finally:
            if self._metrics:
                self._metrics["latency"].labels(**self._metric_labels).observe(time.monotonic() - started)
                if committed_after_success:
                    self._metrics["processed"].labels(**self._metric_labels).inc()
            correlation_id_var.reset(token)

    def _rewind(self, msg: Message):
        """Seeks back to the failed message; the consumer's position has already moved past it."""
        try:
            self._consumer.seek(TopicPartition(msg.topic(), msg.partition(), msg.offset()))
        except Exception as e:
            logger.warning(f"Could not rewind partition {msg.partition()} of '{msg.topic()}': {e}")

    def shutdown(self):
        """Asks the run loop to stop once the current poll returns."""
        logger.info(f"Shutting down consumer for '{self.topic}'...")
        self._running = False

    def _close(self):
        if self._consumer:
            self._consumer.close()
            self._consumer = None
        if self._producer:
            self._producer.flush()
        logger.info(f"Consumer for '{self.topic}' closed.")
