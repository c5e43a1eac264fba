# src/libs/price-common/price_common/exceptions.py

class RetryableConsumerError(Exception):
    """
    Raised from `process_message` when a message could not be applied for a
    reason expected to clear up on its own, such as the product store being
    unreachable. BaseConsumer leaves the offset uncommitted and seeks the
    partition back, so the same message is polled again.
    """
