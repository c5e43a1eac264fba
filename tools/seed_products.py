# tools/seed_products.py
import argparse
import logging
import os
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert

# Runnable from a plain checkout as `python tools/seed_products.py`
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path[:0] = [project_root, os.path.join(project_root, 'src', 'libs', 'price-common')]

from price_common.database_models import Product
from price_common.db import SessionLocal
from price_common.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_product(entry: str) -> Tuple[str, str, Decimal]:
    """Parses 'CODE:NAME:PRICE' into its parts."""
    try:
        code, rest = entry.split(":", 1)
        name, price = rest.rsplit(":", 1)
        parsed_price = Decimal(price)
    except (ValueError, InvalidOperation):
        raise argparse.ArgumentTypeError(f"Expected CODE:NAME:PRICE, got '{entry}'")
    if not code.strip():
        raise argparse.ArgumentTypeError(f"Product code must not be empty in '{entry}'")
    return code.strip(), name.strip(), parsed_price


def seed_products(products: List[Tuple[str, str, Decimal]]) -> int:
    """Upserts the given products by code and returns how many rows were written."""
    with SessionLocal() as db:
        for code, name, price in products:
            stmt = pg_insert(Product).values(code=code, name=name, price=price)
            stmt = stmt.on_conflict_do_update(
                index_elements=['code'],
                set_={"name": stmt.excluded.name, "price": stmt.excluded.price, "updated_at": func.now()},
            )
            db.execute(stmt)
            logger.info(f"Seeded product '{code}' ({name}) at {price}.")
        db.commit()
    return len(products)


def main():
    setup_logging()
    parser = argparse.ArgumentParser(description="Create or update products in the product store.")
    parser.add_argument(
        "--product",
        dest="products",
        action="append",
        type=parse_product,
        required=True,
        help="Product as CODE:NAME:PRICE. Repeat for several products.",
    )
    args = parser.parse_args()

    count = seed_products(args.products)
    logger.info(f"Seeded {count} products.")


if __name__ == "__main__":
    main()
