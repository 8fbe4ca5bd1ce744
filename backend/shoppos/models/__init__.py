from .auth import User, SessionToken
from .catalog import Category, Product
from .sales import Customer, Sale, SaleItem
from .ledger import Due, DuePayment, Supplier, Purchase, PurchasePayment
from .staff import Expense, Employee

__all__ = [
    'User', 'SessionToken',
    'Category', 'Product',
    'Customer', 'Sale', 'SaleItem',
    'Due', 'DuePayment', 'Supplier', 'Purchase', 'PurchasePayment',
    'Expense', 'Employee',
]
