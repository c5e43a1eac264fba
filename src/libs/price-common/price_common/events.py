# src/libs/price-common/price_common/events.py
from decimal import Decimal, ROUND_HALF_UP
from pydantic import BaseModel, Field, ConfigDict, field_validator, field_serializer

PRICE_SCALE = Decimal("0.01")
# Largest value a NUMERIC(10, 2) column holds
MAX_PRICE = Decimal("99999999.99")

class ProductPriceChangedEvent(BaseModel):
    """
    Event model for a product price change. Keyed on the Kafka topic by
    product code, so all changes for one product stay in order.

    On the wire the price is a JSON number: `{"productCode": "P100", "price": 14.5}`.
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, str_strip_whitespace=True)

    product_code: str = Field(..., alias="productCode", min_length=1)
    price: Decimal = Field(..., ge=0, le=MAX_PRICE)

    @field_validator("price")
    @classmethod
    def quantize_price(cls, value: Decimal) -> Decimal:
        return value.quantize(PRICE_SCALE, rounding=ROUND_HALF_UP)

    @field_serializer("price", when_used="json")
    def serialize_price(self, value: Decimal) -> float:
        return float(value)
