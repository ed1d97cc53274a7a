"""Pydantic schemas for the orders HTTP surface.

Request schemas check the shape of incoming payloads and convert them into
the domain values the store takes. They do not apply business rules such as
pricing or stock. Read schemas never expose the card CVV.
"""

import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from .domain import Address, CartItem, CreditCardInfo, Money, Order, OrderItem

CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class AddressIn(BaseModel):
    """Input schema for the shipping address.

    Attributes:
        street_address: Street and number.
        city: City name.
        state: State, province or region.
        country: Country name or code.
        zip_code: Postal code, kept as text.
    """

    street_address: str = Field(max_length=500)
    city: str = Field(max_length=100)
    state: str = Field(max_length=100)
    country: str = Field(max_length=100)
    zip_code: str = Field(max_length=20)

    def to_domain(self) -> Address:
        return Address(**self.model_dump())


class CreditCardIn(BaseModel):
    """Payment card as sent by the checkout flow.

    Attributes:
        number: Card number; digits only.
        cvv: Card verification value.
        expiration_month: 1-12.
        expiration_year: Four-digit year.
    """

    number: str = Field(min_length=1, max_length=19, pattern=r"^[0-9]+$")
    cvv: str = Field(max_length=4)
    expiration_month: int = Field(ge=1, le=12)
    expiration_year: int

    def to_domain(self) -> CreditCardInfo:
        return CreditCardInfo(
            number=self.number,
            cvv=self.cvv,
            expiration_month=self.expiration_month,
            expiration_year=self.expiration_year,
        )


class MoneyIn(BaseModel):
    """Amount as whole units plus nanos (billionths of a unit)."""

    currency_code: str = Field(min_length=3, max_length=3)
    units: int = 0
    nanos: int = Field(default=0, ge=-999_999_999, le=999_999_999)

    @field_validator("currency_code")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Normalize the currency code to uppercase.

        Raises:
            ValueError: When the code is not three letters.
        """
        v2 = v.upper()
        if not CURRENCY_RE.match(v2):
            raise ValueError("Invalid currency code")
        return v2

    def to_domain(self) -> Money:
        return Money(currency_code=self.currency_code, units=self.units, nanos=self.nanos)


class CartItemIn(BaseModel):
    """Input schema for a single cart line.

    Attributes:
        product_id: Product identifier.
        quantity: Positive integer indicating units ordered.
    """

    product_id: str = Field(min_length=1, max_length=50)
    quantity: int = Field(gt=0)


class CreateOrderDTO(BaseModel):
    """Body of ``POST /orders``.

    Attributes:
        order_id: Identifier generated by the checkout flow.
        user_id: Owning customer.
        items: Cart lines; may be empty.
    """

    order_id: str = Field(min_length=1, max_length=50)
    user_id: str = Field(min_length=1, max_length=50)
    email: str = Field(max_length=255)
    address: AddressIn
    credit_card: CreditCardIn
    total: MoneyIn
    items: list[CartItemIn] = Field(default_factory=list)
    shipping_tracking_id: str = Field(default="", max_length=100)

    def cart_items(self) -> list[CartItem]:
        return [CartItem(product_id=i.product_id, quantity=i.quantity) for i in self.items]


class OrderItemReadDTO(BaseModel):
    """Order line as returned by the read endpoints.

    Attributes:
        product_id: Product identifier.
        quantity: Units ordered.
    """

    product_id: str
    quantity: int

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemReadDTO":
        return cls(product_id=item.product_id, quantity=item.quantity)


class OrderReadDTO(BaseModel):
    """Order as returned by the read endpoints.

    ``credit_card_number`` is the masked form; the CVV is never returned.
    ``order_total`` is serialized as a decimal string.
    """

    order_id: str
    user_id: str
    email: str
    address: AddressIn
    credit_card_number: str
    credit_card_expiration_month: int
    credit_card_expiration_year: int
    order_total: Decimal
    currency_code: str
    shipping_tracking_id: str
    created_at: datetime
    items: list[OrderItemReadDTO] | None = None

    @classmethod
    def from_domain(cls, order: Order, items: list[OrderItem] | None = None) -> "OrderReadDTO":
        a = order.address
        return cls(
            order_id=order.order_id,
            user_id=order.user_id,
            email=order.email,
            address=AddressIn(
                street_address=a.street_address,
                city=a.city,
                state=a.state,
                country=a.country,
                zip_code=a.zip_code,
            ),
            credit_card_number=order.credit_card_number,
            credit_card_expiration_month=order.credit_card_expiration_month,
            credit_card_expiration_year=order.credit_card_expiration_year,
            order_total=order.order_total,
            currency_code=order.currency_code,
            shipping_tracking_id=order.shipping_tracking_id,
            created_at=order.created_at,
            items=None if items is None else [OrderItemReadDTO.from_domain(i) for i in items],
        )
