from .tenancy import Tenant, TenantSettings, User, USER_ROLES
from .catalog import Category, Supplier, Product, PRODUCT_UNITS
from .customers import Customer
from .sales import Sale, SaleItem, PAYMENT_METHODS, DELIVERY_TYPES
from .inventory import (
    InventoryLogEntry,
    MOVEMENT_TYPES,
    MOVEMENT_SALE,
    MOVEMENT_ENTRY,
    MOVEMENT_EXIT,
    MOVEMENT_ADJUSTMENT,
)

__all__ = [
    'Tenant', 'TenantSettings', 'User', 'USER_ROLES',
    'Category', 'Supplier', 'Product', 'PRODUCT_UNITS',
    'Customer',
    'Sale', 'SaleItem', 'PAYMENT_METHODS', 'DELIVERY_TYPES',
    'InventoryLogEntry', 'MOVEMENT_TYPES',
    'MOVEMENT_SALE', 'MOVEMENT_ENTRY', 'MOVEMENT_EXIT', 'MOVEMENT_ADJUSTMENT',
]
