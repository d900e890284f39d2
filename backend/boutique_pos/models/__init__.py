from .staff import Employee, EMPLOYEE_ROLES
from .catalog import Product, ProductColor, ProductSize
from .sales import Sale, SaleItem, STORE_TYPES, SALE_PAYMENT_METHODS
from .orders import Order, OrderItem, ORDER_STATUSES, ORDER_PAYMENT_METHODS
from .returns import (
    ReturnExchange,
    ReturnLine,
    RETURN_TYPES,
    EXCHANGE_MODES,
    RETURN_STATUS_PENDING,
    RETURN_STATUS_APPROVED,
    RETURN_STATUS_REJECTED,
)
from .activity import Activity, ACTIVITY_CONTEXTS
from .documents import DocumentSequence

__all__ = [
    'Employee', 'EMPLOYEE_ROLES',
    'Product', 'ProductColor', 'ProductSize',
    'Sale', 'SaleItem', 'STORE_TYPES', 'SALE_PAYMENT_METHODS',
    'Order', 'OrderItem', 'ORDER_STATUSES', 'ORDER_PAYMENT_METHODS',
    'ReturnExchange', 'ReturnLine', 'RETURN_TYPES', 'EXCHANGE_MODES',
    'RETURN_STATUS_PENDING', 'RETURN_STATUS_APPROVED', 'RETURN_STATUS_REJECTED',
    'Activity', 'ACTIVITY_CONTEXTS',
    'DocumentSequence',
]
