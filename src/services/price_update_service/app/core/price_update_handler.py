# src/services/price_update_service/app/core/price_update_handler.py
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import ValidationError

from price_common.events import ProductPriceChangedEvent
from ..repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class PriceUpdateOutcome(str, Enum):
    """How a single price change event was resolved against the product store."""
    APPLIED = "APPLIED"    # product found, price overwritten
    SKIPPED = "SKIPPED"    # no product with that code; nothing to do
    REJECTED = "REJECTED"  # payload could not be decoded; never retried


@dataclass(frozen=True)
class PriceUpdateResult:
    outcome: PriceUpdateOutcome
    product_code: Optional[str] = None
    price: Optional[Decimal] = None
    reason: Optional[str] = None


class EventDecodeError(ValueError):
    """Raised when a message body is not a valid product price change event."""
    pass


def decode_price_changed_event(payload: Union[bytes, str, None]) -> ProductPriceChangedEvent:
    """
    Decodes a raw message value into a ProductPriceChangedEvent.

    Raises:
        EventDecodeError: for malformed JSON, a non-object body, an empty
            product code, or a missing, non-numeric, negative or oversized
            price. A tombstone (no value at all) is rejected the same way.
    """
    if payload is None:
        raise EventDecodeError("Message has no value (tombstone)")

    try:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EventDecodeError(f"Message value is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise EventDecodeError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return ProductPriceChangedEvent.model_validate(data)
    except ValidationError as e:
        raise EventDecodeError(f"Invalid product price changed event: {e}") from e


class PriceUpdateHandler:
    """
    Applies product price change events to the product store.

    The handler is stateless: every call does one lookup by product code and
    at most one write. Applying the same event twice leaves the same price,
    so redelivered messages are harmless. Store errors are never caught here;
    they surface to the caller, which decides whether to retry.
    """

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    async def handle(self, event: ProductPriceChangedEvent) -> PriceUpdateResult:
        product = await self.repository.find_by_code(event.product_code)
        if product is None:
            logger.info(
                "No product found for price change. Skipping.",
                extra={"product_code": event.product_code},
            )
            return PriceUpdateResult(
                outcome=PriceUpdateOutcome.SKIPPED,
                product_code=event.product_code,
                price=event.price,
                reason="product not found",
            )

        previous_price = product.price
        product.price = event.price
        await self.repository.save(product)

        logger.info(
            f"Updated price of product '{event.product_code}' from {previous_price} to {event.price}.",
            extra={"product_code": event.product_code},
        )
        return PriceUpdateResult(
            outcome=PriceUpdateOutcome.APPLIED,
            product_code=event.product_code,
            price=event.price,
        )

    async def handle_payload(self, payload: Union[bytes, str, None]) -> PriceUpdateResult:
        """Decodes a raw message value and applies it. Decode failures are returned, not raised."""
        try:
            event = decode_price_changed_event(payload)
        except EventDecodeError as e:
            logger.error(f"Rejecting price change message: {e}")
            return PriceUpdateResult(outcome=PriceUpdateOutcome.REJECTED, reason=str(e))

        return await self.handle(event)
