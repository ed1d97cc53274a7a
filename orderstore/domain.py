"""Domain values for order persistence.

This module contains the dataclasses the store accepts from the checkout
flow (address, card, money and cart items) and the records it returns
(orders and their items). They carry no persistence logic so callers are not
coupled to SQLAlchemy types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

NANOS_PER_UNIT = Decimal(1_000_000_000)


# ---- Inputs ----
@dataclass(frozen=True)
class Address:
    """Shipping address of an order.

    Attributes:
        street_address: Street and number.
        city: City name.
        state: State, province or region.
        country: Country name or code.
        zip_code: Postal code, kept as text.
    """

    street_address: str
    city: str
    state: str
    country: str
    zip_code: str


@dataclass(frozen=True)
class CreditCardInfo:
    """Payment card as received from the checkout request.

    Only the last four digits of ``number`` are ever persisted.
    """

    number: str = field(repr=False)
    cvv: str = field(repr=False)
    expiration_month: int
    expiration_year: int


@dataclass(frozen=True)
class Money:
    """Amount expressed as whole units plus a fractional part in nanos.

    Attributes:
        currency_code: ISO 4217 code (e.g. 'USD').
        units: Whole units of the amount.
        nanos: Billionths of a unit, with the same sign as ``units``.
    """

    currency_code: str
    units: int = 0
    nanos: int = 0

    def to_decimal(self) -> Decimal:
        """Collapse units and nanos into a single decimal amount.

        Returns:
            Decimal: ``units + nanos / 1e9`` computed without float rounding,
            e.g. units=10, nanos=500000000 gives Decimal('10.5').
        """
        return Decimal(self.units) + Decimal(self.nanos) / NANOS_PER_UNIT


@dataclass(frozen=True)
class CartItem:
    """A product and quantity to record as an order line."""

    product_id: str
    quantity: int


# ---- Records ----
@dataclass(frozen=True)
class OrderItem:
    """A persisted order line.

    Attributes:
        id: Synthetic identifier assigned by the store.
        order_id: Identifier of the owning order.
        product_id: Product identifier.
        quantity: Positive number of units.
    """

    id: int
    order_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Order:
    """A persisted order header.

    ``credit_card_number`` always holds the masked form. ``created_at`` is
    assigned by the store at write time and is timezone-aware UTC.
    """

    order_id: str
    user_id: str
    email: str
    address: Address
    credit_card_number: str
    credit_card_cvv: str = field(repr=False)
    credit_card_expiration_month: int
    credit_card_expiration_year: int
    order_total: Decimal
    currency_code: str
    shipping_tracking_id: str
    created_at: datetime
