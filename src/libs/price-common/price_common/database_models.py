# src/libs/price-common/price_common/database_models.py
from sqlalchemy import (
    Column, Integer,
    String, Numeric, DateTime,
    func,
)

from .db_base import Base

class Product(Base):
    """A sellable item, addressed by its unique product code."""
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, code='{self.code}', price={self.price})>"
