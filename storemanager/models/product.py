"""Product model."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storemanager.database import Base, IdType


# Fixed category set offered by the product form
PRODUCT_CATEGORIES = [
    'Groceries',
    'Beverages',
    'Cleaning supplies',
    'Household goods',
    'Cosmetics',
    'Medicines',
    'Clothing',
    'Electronics',
    'Other',
]


class Product(Base):
    """Product model."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_product_quantity_non_negative'),
        CheckConstraint('purchase_price >= 0', name='ck_product_purchase_price_non_negative'),
        CheckConstraint('selling_price >= 0', name='ck_product_selling_price_non_negative'),
        CheckConstraint('min_quantity >= 1', name='ck_product_min_quantity_positive'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(80), nullable=False)
    quantity = Column(Integer, nullable=False, default=0, server_default='0')
    purchase_price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    selling_price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    min_quantity = Column(Integer, nullable=False, default=5, server_default='5')
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())

    # Relationships
    owner = relationship('AppUser')
    # Deleting a product detaches its sale items (product_id set to NULL)
    sale_items = relationship('SaleItem', back_populates='product')

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', quantity={self.quantity})>"

    @property
    def is_low_stock(self):
        """Stock has fallen to or below the configured minimum."""
        return self.quantity <= self.min_quantity

    @property
    def unit_profit(self):
        return self.selling_price - self.purchase_price
