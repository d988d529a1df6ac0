from .inventory import Product, Supplier, PRODUCT_LIST_FIELDS
from .sales import Sale, SaleItem
from .settings import Setting, SchemaMigration

__all__ = [
    'Product', 'Supplier', 'PRODUCT_LIST_FIELDS',
    'Sale', 'SaleItem',
    'Setting', 'SchemaMigration',
]
