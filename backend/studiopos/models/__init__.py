from .auth import User, ROLES, ADMIN_ROLES
from .inventory import Category, Product, StockAdjustment, CATEGORY_TYPES, ADJUSTMENT_TYPES
from .sales import Order, OrderItem, Payment, InvoiceSequence, ORDER_STATUSES, PAYMENT_METHODS
from .shifts import Shift, SHIFT_STATUSES
from .audit import AuditLog
from .expenses import Expense, EXPENSE_CATEGORIES

__all__ = [
    'User', 'ROLES', 'ADMIN_ROLES',
    'Category', 'Product', 'StockAdjustment', 'CATEGORY_TYPES', 'ADJUSTMENT_TYPES',
    'Order', 'OrderItem', 'Payment', 'InvoiceSequence', 'ORDER_STATUSES', 'PAYMENT_METHODS',
    'Shift', 'SHIFT_STATUSES',
    'AuditLog',
    'Expense', 'EXPENSE_CATEGORIES',
]
