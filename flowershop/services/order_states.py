from typing import Dict, FrozenSet, Optional

from ..db.session import get_session
from ..models.order import Order, OrderItem, OrderStatus, PaymentStatus
from ..utils.clock import utcnow
from .errors import InvalidTransition, NotFound, ValidationError
from .logging import log_event
from .stock_guard import StockGuard


STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset(
        {OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}
    ),
    OrderStatus.READY_FOR_PICKUP: frozenset({OrderStatus.CLAIMED, OrderStatus.COMPLETED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.CLAIMED: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.TO_PAY: frozenset({PaymentStatus.AWAITING_CONFIRMATION, PaymentStatus.PAID}),
    PaymentStatus.AWAITING_CONFIRMATION: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset(),
}

CANCELLABLE = (OrderStatus.PENDING.value, OrderStatus.PROCESSING.value)


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


def parse_payment_status(value) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid payment status: {value}")


def sources_for(table, target):
    return [s.value for s, targets in table.items() if target in targets]


class OrderStateMachine:
    """Status and payment transitions of existing orders.

    Every transition is one conditional UPDATE guarded on the allowed source
    states, so two racing requests cannot both apply. When the update matches
    nothing, the current row is read only to pick the error to report.
    """

    def __init__(self, session_factory=get_session, stock_guard: Optional[StockGuard] = None, requires_receipt=None):
        self._session_factory = session_factory
        self._stock = stock_guard or StockGuard()
        self._requires_receipt = requires_receipt or (lambda method: False)

    def cancel(self, order_id, user_id) -> bool:
        """Cancel the user's own order if still pending/processing; True when it changed."""
        with self._session_factory() as session:
            updated = (
                session.query(Order)
                .filter(Order.id == order_id, Order.user_id == user_id, Order.status.in_(CANCELLABLE))
                .update({Order.status: OrderStatus.CANCELLED.value}, synchronize_session=False)
            )
            if updated:
                self._restock(session, order_id)
                log_event("info", "order.cancelled", order_id=order_id, user_id=user_id)
            return bool(updated)

    def set_status(self, order_id, new_status) -> str:
        target = parse_status(new_status)
        with self._session_factory() as session:
            updated = (
                session.query(Order)
                .filter(Order.id == order_id, Order.status.in_(sources_for(STATUS_TRANSITIONS, target)))
                .update({Order.status: target.value}, synchronize_session=False)
            )
            if not updated:
                current = self._current(session, order_id, Order.status)
                if current == target.value:
                    return current
                raise InvalidTransition(f"Cannot change status from {current} to {target.value}")
            if target is OrderStatus.CANCELLED:
                self._restock(session, order_id)
            log_event("info", "order.status_changed", order_id=order_id, status=target.value)
            return target.value

    def set_payment_status(self, order_id, new_payment_status) -> str:
        target = parse_payment_status(new_payment_status)
        values = {Order.payment_status: target.value}
        if target is PaymentStatus.PAID:
            values[Order.paid_at] = utcnow()
        with self._session_factory() as session:
            updated = (
                session.query(Order)
                .filter(
                    Order.id == order_id,
                    Order.status != OrderStatus.CANCELLED.value,
                    Order.payment_status.in_(sources_for(PAYMENT_TRANSITIONS, target)),
                )
                .update(values, synchronize_session=False)
            )
            if not updated:
                row = self._current_row(session, order_id)
                if row.payment_status == target.value:
                    return row.payment_status
                if row.status == OrderStatus.CANCELLED.value:
                    raise InvalidTransition("Payment cannot change on a cancelled order")
                raise InvalidTransition(
                    f"Cannot change payment status from {row.payment_status} to {target.value}"
                )
            log_event("info", "order.payment_status_changed", order_id=order_id, payment_status=target.value)
            return target.value

    def confirm_payment(self, order_id, payment_type, receipt_url: Optional[str] = None) -> None:
        """Mark an order paid by ``payment_type``.

        Receipt-based methods need a receipt, either passed here or already
        attached to the order at checkout.
        """
        if not isinstance(payment_type, str) or not payment_type.strip():
            raise ValidationError("payment_type is required")
        payment_type = payment_type.strip().lower()
        needs_receipt = self._requires_receipt(payment_type)
        values = {
            Order.payment_status: PaymentStatus.PAID.value,
            Order.payment_method: payment_type,
            Order.paid_at: utcnow(),
        }
        if receipt_url:
            values[Order.receipt_url] = receipt_url
        with self._session_factory() as session:
            q = session.query(Order).filter(
                Order.id == order_id,
                Order.status != OrderStatus.CANCELLED.value,
                Order.payment_status != PaymentStatus.PAID.value,
            )
            if needs_receipt and not receipt_url:
                q = q.filter(Order.receipt_url.isnot(None))
            updated = q.update(values, synchronize_session=False)
            if not updated:
                row = self._current_row(session, order_id)
                if row.payment_status == PaymentStatus.PAID.value:
                    raise InvalidTransition("Order is already paid")
                if row.status == OrderStatus.CANCELLED.value:
                    raise InvalidTransition("Payment cannot change on a cancelled order")
                raise ValidationError(f"A payment receipt is required for {payment_type}")
            log_event("info", "order.payment_confirmed", order_id=order_id, payment_type=payment_type)

    def _restock(self, session, order_id) -> None:
        items = session.query(OrderItem).filter(OrderItem.order_id == order_id).all()
        for it in items:
            self._stock.release(session, it.product_id, it.quantity)

    @staticmethod
    def _current(session, order_id, column):
        value = session.query(column).filter(Order.id == order_id).scalar()
        if value is None:
            raise NotFound("Order not found")
        return value

    @staticmethod
    def _current_row(session, order_id):
        row = (
            session.query(Order.status, Order.payment_status)
            .filter(Order.id == order_id)
            .first()
        )
        if row is None:
            raise NotFound("Order not found")
        return row
