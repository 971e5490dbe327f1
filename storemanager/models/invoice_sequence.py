"""Invoice Sequence model - per-owner counter behind invoice numbers."""
from sqlalchemy import Column, BigInteger, DateTime, ForeignKey
from sqlalchemy.sql import func
from storemanager.database import Base, IdType


class InvoiceSequence(Base):
    """Last invoice number issued for an owner."""

    __tablename__ = 'invoice_sequence'

    owner_id = Column(IdType, ForeignKey('app_user.id'), primary_key=True, autoincrement=False)
    last_value = Column(BigInteger, nullable=False, default=0, server_default='0')
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<InvoiceSequence(owner_id={self.owner_id}, last_value={self.last_value})>"
