"""SQLAlchemy repository for checkout orders.

``OrderStore`` records a completed purchase as one ``orders`` header row
plus one ``order_items`` row per cart line, inside a single transaction:
either everything is committed or nothing is. It also reads orders back by
id or by customer.

The engine is passed in by the owner of the process; the store keeps no
global state. Every failure surfaces as a ``StoreError`` whose ``kind``
tells callers what went wrong (see ``orderstore.errors``).
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import set_statement_timeout
from .deadline import Deadline
from .domain import Address, CartItem, CreditCardInfo, Money, Order, OrderItem
from .errors import ErrorKind, StoreError
from .logs import get_logger
from .masking import mask_credit_card
from .models import OrderItemRecord, OrderRecord

logger = get_logger("orderstore.repository")

# Scale of orders.order_total
TOTAL_QUANTUM = Decimal("0.01")


class MonotonicClock:
    """Hands out strictly increasing, timezone-aware UTC timestamps.

    When the wall clock stalls or steps back, the next timestamp is the
    previous one plus one microsecond.

    Args:
        source: Callable returning the current time; defaults to UTC now.
    """

    def __init__(self, source: Optional[Callable[[], datetime]] = None):
        self._source = source or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._last: Optional[datetime] = None

    def now(self) -> datetime:
        with self._lock:
            ts = self._source()
            if self._last is not None and ts <= self._last:
                ts = self._last + timedelta(microseconds=1)
            self._last = ts
            return ts


def _reason(exc: BaseException) -> str:
    # DBAPI message only; the wrapper's text would carry the SQL
    return str(getattr(exc, "orig", None) or exc)


def _text(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected text, got {type(value).__name__}")
    return value


def _int(value) -> int:
    return 0 if value is None else int(value)


def _decimal(value) -> Decimal:
    return Decimal(0) if value is None else Decimal(value)


def _utc(value) -> datetime:
    if not isinstance(value, datetime):
        raise TypeError(f"expected datetime, got {type(value).__name__}")
    # SQLite hands back naive values; they were written as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _decode_order(rec: OrderRecord) -> Order:
    """Map an ``orders`` row to an ``Order``.

    Raises:
        StoreError: With kind ``DECODE`` when a column does not hold a value
            of the expected type.
    """
    try:
        if not rec.order_id or not rec.user_id:
            raise ValueError("missing order_id or user_id")
        return Order(
            order_id=_text(rec.order_id),
            user_id=_text(rec.user_id),
            email=_text(rec.email),
            address=Address(
                street_address=_text(rec.street_address),
                city=_text(rec.city),
                state=_text(rec.state),
                country=_text(rec.country),
                zip_code=_text(rec.zip_code),
            ),
            credit_card_number=_text(rec.credit_card_number_masked),
            credit_card_cvv=_text(rec.credit_card_cvv),
            credit_card_expiration_month=_int(rec.credit_card_exp_month),
            credit_card_expiration_year=_int(rec.credit_card_exp_year),
            order_total=_decimal(rec.order_total),
            currency_code=_text(rec.currency_code),
            shipping_tracking_id=_text(rec.shipping_tracking_id),
            created_at=_utc(rec.created_at),
        )
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise StoreError(ErrorKind.DECODE, "decode order", f"{rec.order_id}: {exc}") from exc


def _decode_item(rec: OrderItemRecord) -> OrderItem:
    """Map an ``order_items`` row to an ``OrderItem``.

    Raises:
        StoreError: With kind ``DECODE`` when a column does not hold a value
            of the expected type.
    """
    try:
        return OrderItem(
            id=int(rec.id),
            order_id=_text(rec.order_id),
            product_id=_text(rec.product_id),
            quantity=int(rec.quantity),
        )
    except (TypeError, ValueError) as exc:
        raise StoreError(ErrorKind.DECODE, "decode order item", f"{rec.id}: {exc}") from exc


class OrderStore:
    """Repository for persisting and reading checkout orders.

    Safe to share between threads: each call checks out its own connection
    from the engine's pool, and isolation between concurrent writers is left
    to the database.

    Args:
        engine: Pooled engine owned by the surrounding process.
        clock: Source of creation timestamps.
    """

    def __init__(self, engine: Engine, clock: Optional[MonotonicClock] = None):
        self._engine = engine
        self._clock = clock or MonotonicClock()

    # ---- Writes ----
    def save_order(
        self,
        order_id: str,
        user_id: str,
        email: str,
        address: Address,
        credit_card: CreditCardInfo,
        total: Money,
        items: Iterable[CartItem],
        tracking_id: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """Persist an order header and its items atomically.

        The card number is masked before it reaches the database and the
        total is collapsed to a single decimal, rounded half-up to cents so
        every dialect stores the same value. Items are inserted in the
        given order. Any failure rolls the transaction back before the error
        is raised, so no partial order is ever visible.

        Args:
            order_id: Externally generated, unique order identifier.
            user_id: Owning customer.
            email: Contact email.
            address: Shipping address.
            credit_card: Card used for payment; only its masked number is
                stored.
            total: Order total as units and nanos.
            items: Cart lines; may be empty.
            tracking_id: Shipment tracking identifier.
            deadline: Caller's timeout or cancellation signal.

        Raises:
            ValueError: If ``order_id`` or ``user_id`` is empty.
            StoreError: ``CONNECTION`` if no connection can be acquired,
                ``TRANSACTION`` if begin or commit fails, ``WRITE`` if the
                header or an item is rejected (duplicate id included),
                ``CANCELLED`` if the deadline fires.
        """
        if not order_id:
            raise ValueError("order_id is required")
        if not user_id:
            raise ValueError("user_id is required")
        deadline = deadline or Deadline.none()
        lines = list(items)

        with self._connect(deadline) as conn, Session(bind=conn) as s:
            try:
                self._begin(s, deadline)
                header = OrderRecord(
                    order_id=order_id,
                    user_id=user_id,
                    email=email,
                    street_address=address.street_address,
                    city=address.city,
                    state=address.state,
                    country=address.country,
                    zip_code=address.zip_code,
                    credit_card_number_masked=mask_credit_card(credit_card.number),
                    credit_card_cvv=credit_card.cvv,
                    credit_card_exp_month=credit_card.expiration_month,
                    credit_card_exp_year=credit_card.expiration_year,
                    order_total=total.to_decimal().quantize(TOTAL_QUANTUM, rounding=ROUND_HALF_UP),
                    currency_code=total.currency_code,
                    shipping_tracking_id=tracking_id,
                    created_at=self._clock.now(),
                )
                self._insert(s, header, "insert order", deadline)
                for item in lines:
                    line = OrderItemRecord(order_id=order_id, product_id=item.product_id, quantity=item.quantity)
                    self._insert(s, line, "insert order item", deadline)
                deadline.check("commit transaction")
                self._commit(s)
            except StoreError as exc:
                self._rollback(s, order_id)
                logger.warning(
                    "order not persisted",
                    extra={"order_id": order_id, "kind": exc.kind.value, "stage": exc.stage},
                )
                raise

        logger.info("order persisted", extra={"order_id": order_id, "items": len(lines)})

    # ---- Reads ----
    def get_order(self, order_id: str, deadline: Optional[Deadline] = None) -> Order:
        """Fetch an order header by id.

        Raises:
            StoreError: ``NOT_FOUND`` when no order has this id; ``READ``,
                ``CONNECTION``, ``DECODE`` or ``CANCELLED`` otherwise.
        """
        deadline = deadline or Deadline.none()
        with self._connect(deadline) as conn, Session(bind=conn) as s:
            rec = self._query(s, "query order", deadline, lambda: s.get(OrderRecord, order_id))
            if rec is None:
                raise StoreError(ErrorKind.NOT_FOUND, "find order", f"order {order_id} not found")
            return _decode_order(rec)

    def get_user_orders(self, user_id: str, deadline: Optional[Deadline] = None) -> List[Order]:
        """Fetch every order of a customer, most recent first.

        Returns:
            list[Order]: Possibly empty list ordered by ``created_at``
            descending.

        Raises:
            StoreError: ``DECODE`` once for the whole call if any row cannot
                be decoded; ``READ``, ``CONNECTION`` or ``CANCELLED`` on
                query failures.
        """
        deadline = deadline or Deadline.none()
        stmt = (
            select(OrderRecord)
            .where(OrderRecord.user_id == user_id)
            .order_by(OrderRecord.created_at.desc(), OrderRecord.order_id.desc())
        )
        with self._connect(deadline) as conn, Session(bind=conn) as s:
            recs = self._query(s, "query user orders", deadline, lambda: s.scalars(stmt).all())
            try:
                return [_decode_order(r) for r in recs]
            except StoreError as exc:
                raise StoreError(ErrorKind.DECODE, "decode user orders", exc.detail) from exc

    def get_order_items(self, order_id: str, deadline: Optional[Deadline] = None) -> List[OrderItem]:
        """Fetch the items of an order in the order they were written.

        Returns an empty list when the order has no items or does not exist;
        use ``get_order`` to tell those apart.
        """
        deadline = deadline or Deadline.none()
        stmt = select(OrderItemRecord).where(OrderItemRecord.order_id == order_id).order_by(OrderItemRecord.id)
        with self._connect(deadline) as conn, Session(bind=conn) as s:
            recs = self._query(s, "query order items", deadline, lambda: s.scalars(stmt).all())
            return [_decode_item(r) for r in recs]

    # ---- Helpers ----
    def _connect(self, deadline: Deadline) -> Connection:
        """Check out a connection from the engine pool.

        Args:
            deadline: Checked before the pool is touched.

        Returns:
            Connection: Connection to use as a context manager.

        Raises:
            StoreError: ``CONNECTION`` when the database cannot be reached.
        """
        deadline.check("connect")
        try:
            return self._engine.connect()
        except SQLAlchemyError as exc:
            raise StoreError(ErrorKind.CONNECTION, "connect", _reason(exc)) from exc

    def _begin(self, s: Session, deadline: Deadline) -> None:
        """Open the write transaction and bound it by the deadline.

        Args:
            s: Session bound to the checked-out connection.
            deadline: Remaining time becomes the statement timeout on
                PostgreSQL.

        Raises:
            StoreError: ``TRANSACTION`` when the transaction cannot start.
        """
        deadline.check("begin transaction")
        try:
            # Forces the session to begin its transaction on the connection
            set_statement_timeout(s.connection(), deadline.remaining())
        except SQLAlchemyError as exc:
            raise StoreError(ErrorKind.TRANSACTION, "begin transaction", _reason(exc)) from exc

    def _insert(self, s: Session, rec, stage: str, deadline: Deadline) -> None:
        """Add one row and flush it so the database rejects it right away.

        Args:
            s: Session holding the open transaction.
            rec: ``OrderRecord`` or ``OrderItemRecord`` to insert.
            stage: Stage name reported on failure.
            deadline: Checked before the statement runs.

        Raises:
            StoreError: ``WRITE`` when the insert is rejected, ``CANCELLED``
                when the deadline fired while it ran.
        """
        deadline.check(stage)
        s.add(rec)
        try:
            s.flush()
        except SQLAlchemyError as exc:
            kind = ErrorKind.CANCELLED if deadline.expired() else ErrorKind.WRITE
            raise StoreError(kind, stage, _reason(exc)) from exc

    def _commit(self, s: Session) -> None:
        """Commit the write transaction.

        Raises:
            StoreError: ``TRANSACTION`` when the commit fails.
        """
        try:
            s.commit()
        except SQLAlchemyError as exc:
            raise StoreError(ErrorKind.TRANSACTION, "commit transaction", _reason(exc)) from exc

    def _rollback(self, s: Session, order_id: str) -> None:
        """Roll back after a failure; a failing rollback is only logged."""
        try:
            s.rollback()
        except SQLAlchemyError as exc:
            # The original failure is what the caller needs to see
            logger.error("rollback failed", extra={"order_id": order_id, "error": _reason(exc)})

    def _query(self, s: Session, stage: str, deadline: Deadline, run: Callable):
        """Run a read under the deadline and classify its failures.

        Args:
            s: Session bound to the checked-out connection.
            stage: Stage name reported on failure.
            deadline: Checked before the query and applied as statement
                timeout on PostgreSQL.
            run: Callable executing the query and returning its result.

        Returns:
            Whatever ``run`` returns.

        Raises:
            StoreError: ``READ`` when the engine rejects the query,
                ``CANCELLED`` when the deadline fired, ``DECODE`` when a
                value cannot be loaded.
        """
        deadline.check(stage)
        try:
            set_statement_timeout(s.connection(), deadline.remaining())
            return run()
        except SQLAlchemyError as exc:
            kind = ErrorKind.CANCELLED if deadline.expired() else ErrorKind.READ
            raise StoreError(kind, stage, _reason(exc)) from exc
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise StoreError(ErrorKind.DECODE, stage, str(exc)) from exc
