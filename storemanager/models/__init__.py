"""Models package - exports all SQLAlchemy models."""
# Identity
from storemanager.models.app_user import AppUser

# Business Models
from storemanager.models.product import Product, PRODUCT_CATEGORIES
from storemanager.models.sale import Sale
from storemanager.models.sale_item import SaleItem
from storemanager.models.invoice_sequence import InvoiceSequence

__all__ = [
    'AppUser',
    'Product', 'PRODUCT_CATEGORIES',
    'Sale', 'SaleItem', 'InvoiceSequence',
]
