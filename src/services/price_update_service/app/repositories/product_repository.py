# src/services/price_update_service/app/repositories/product_repository.py
import logging
from typing import Optional
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert

from price_common.database_models import Product as DBProduct
from price_common.utils import async_timed

logger = logging.getLogger(__name__)

class ProductRepository:
    """
    Record store access for products. Statements are staged on the given
    session; committing is left to the caller's transaction.
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    @async_timed("ProductRepository")
    async def find_by_code(self, code: str) -> Optional[DBProduct]:
        stmt = select(DBProduct).where(DBProduct.code == code)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    @async_timed("ProductRepository")
    async def save(self, product: DBProduct) -> DBProduct:
        """
        Persists a product. Products already tracked by the session are flushed
        as-is; new products go through a native PostgreSQL UPSERT on `code`, so
        saving a code that already exists updates its name and price instead
        of violating the unique constraint.
        """
        if product.id is not None:
            persisted = await self.db.merge(product)
            await self.db.flush()
            logger.info(f"Successfully staged update for product '{product.code}'.")
            return persisted

        stmt = pg_insert(DBProduct).values(
            code=product.code,
            name=product.name,
            price=product.price,
        )
        final_stmt = stmt.on_conflict_do_update(
            index_elements=['code'],
            set_={
                "name": stmt.excluded.name,
                "price": stmt.excluded.price,
                "updated_at": func.now(),
            },
        ).returning(DBProduct.id)

        result = await self.db.execute(final_stmt)
        product_id = result.scalar_one()
        logger.info(f"Successfully staged UPSERT for product '{product.code}'.")

        return await self.db.get(DBProduct, product_id, populate_existing=True)

    @async_timed("ProductRepository")
    async def delete_by_id(self, product_id: int) -> bool:
        result = await self.db.execute(delete(DBProduct).where(DBProduct.id == product_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted product with id {product_id}.")
        return deleted
