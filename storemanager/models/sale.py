"""Sale model."""
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storemanager.database import Base, IdType


class Sale(Base):
    """Sale (completed checkout)."""

    __tablename__ = 'sale'
    __table_args__ = (
        UniqueConstraint('owner_id', 'invoice_number', name='uq_sale_owner_invoice_number'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id'), nullable=False, index=True)
    invoice_number = Column(String(40), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    profit = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now,
                        server_default=func.now(), index=True)

    # Relationships
    owner = relationship('AppUser')
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan',
                         order_by='SaleItem.id')

    @property
    def item_count(self):
        """Units sold across all items."""
        return sum(item.quantity for item in self.items)

    def __repr__(self):
        return f"<Sale(id={self.id}, invoice_number='{self.invoice_number}', total_amount={self.total_amount})>"
