"""Order persistence for the checkout workflow.

The package records completed purchases (an order header plus its line
items) in a relational store and reads them back by order id or by
customer. ``OrderStore`` is the entry point; ``init_db`` prepares the
schema it relies on.
"""

from .domain import Address, CartItem, CreditCardInfo, Money, Order, OrderItem
from .errors import ErrorKind, StoreError
from .masking import mask_credit_card
from .repository import OrderStore
from .schema import init_db, wait_for_db

__all__ = [
    "Address",
    "CartItem",
    "CreditCardInfo",
    "ErrorKind",
    "Money",
    "Order",
    "OrderItem",
    "OrderStore",
    "StoreError",
    "init_db",
    "mask_credit_card",
    "wait_for_db",
]
