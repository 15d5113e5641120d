from typing import Dict, List, Optional
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from ..db.session import get_session
from ..models.address import Address
from ..models.order import CASH_ON_DELIVERY, DeliveryMethod, Order, OrderItem, OrderStatus, PaymentStatus
from ..models.user import User
from ..utils.dto import money, to_address_dto, to_order_dto, to_order_item_dto
from ..utils.validators import ensure_id, optional_text
from .errors import EmptyOrder, NotFound, PersistenceFailure, ShopError, ValidationError
from .logging import log_event
from .order_states import parse_payment_status, parse_status
from .pricing import PricedLine, PricingEngine, parse_delivery_method
from .stock_guard import StockGuard


class OrderService:
    """Order creation and retrieval backed by DB."""

    def __init__(self, pricing: PricingEngine, stock_guard: Optional[StockGuard] = None, session_factory=get_session):
        self._pricing = pricing
        self._stock = stock_guard or StockGuard()
        self._session_factory = session_factory

    def create_order(
        self,
        *,
        user_id,
        lines: Optional[List[Dict]],
        delivery_method,
        payment_method,
        address_id=None,
        notes: Optional[str] = None,
        receipt_url: Optional[str] = None,
    ) -> Dict:
        """Price ``lines`` from the catalog and store the order with its items.

        Header, item snapshots and stock decrements share one transaction:
        either all of them are committed or none is.
        """
        if not lines:
            raise EmptyOrder()
        if not isinstance(lines, list):
            raise ValidationError("items must be a list")
        method = parse_delivery_method(delivery_method)
        if not isinstance(payment_method, str) or not payment_method.strip():
            raise ValidationError("payment_method is required")
        payment_method = payment_method.strip().lower()
        notes = optional_text(notes, "notes", 2000)
        receipt_url = optional_text(receipt_url, "receipt_url", 512)

        try:
            with self._session_factory() as session:
                priced = self._pricing.compute_order(session, lines, method)
                if method is DeliveryMethod.DELIVERY:
                    address_id = self._require_address(session, user_id, address_id)
                else:
                    address_id = None
                order = Order(
                    user_id=user_id,
                    status=OrderStatus.PENDING.value,
                    payment_status=(
                        PaymentStatus.TO_PAY.value
                        if payment_method == CASH_ON_DELIVERY
                        else PaymentStatus.AWAITING_CONFIRMATION.value
                    ),
                    payment_method=payment_method,
                    delivery_method=method.value,
                    address_id=address_id,
                    subtotal=priced.subtotal,
                    delivery_fee=priced.delivery_fee,
                    total=priced.total,
                    notes=notes,
                    receipt_url=receipt_url,
                )
                session.add(order)
                # header insert assigns id and order_number
                session.flush()
                for line in priced.lines:
                    self._add_line_item(session, order, line)
                session.flush()
                result = {"id": order.id, "order_number": order.order_number, "total": money(priced.total)}
        except ShopError as exc:
            log_event("warning", "order.create_failed", user_id=user_id, reason=exc.message)
            raise
        except SQLAlchemyError as exc:
            log_event("error", "order.create_failed", user_id=user_id, error=type(exc).__name__, detail=str(exc))
            raise PersistenceFailure() from exc
        log_event(
            "info",
            "order.created",
            order_id=result["id"],
            order_number=result["order_number"],
            items=len(priced.lines),
            total=result["total"],
        )
        return result

    def _add_line_item(self, session, order: Order, line: PricedLine) -> None:
        self._stock.reserve(session, line.product_id, line.quantity)
        session.add(
            OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
        )

    @staticmethod
    def _require_address(session, user_id, address_id) -> int:
        if address_id is None or address_id == "":
            raise ValidationError("address_id is required for delivery")
        address_id = ensure_id(address_id, "address_id")
        found = (
            session.query(Address.id)
            .filter(Address.id == address_id, Address.user_id == user_id)
            .first()
        )
        if not found:
            raise ValidationError("Delivery address not found")
        return address_id

    def list_orders(self, user_id, status: Optional[str] = None) -> List[Dict]:
        with self._session_factory() as session:
            q = session.query(Order).filter(Order.user_id == user_id)
            if status:
                q = q.filter(Order.status == parse_status(status).value)
            rows = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
            return [to_order_dto(o) for o in rows]

    def get_order(self, order_id, user_id) -> Dict:
        with self._session_factory() as session:
            o = (
                session.query(Order)
                .filter(Order.id == order_id, Order.user_id == user_id)
                .first()
            )
            if not o:
                raise NotFound("Order not found")
            address = None
            if o.address_id is not None:
                address = session.query(Address).filter(Address.id == o.address_id).first()
            data = to_order_dto(o)
            data["address"] = to_address_dto(address)
            data["items"] = [to_order_item_dto(it) for it in o.items]
            return data

    def list_all_orders(self, status: Optional[str] = None, payment_status: Optional[str] = None) -> List[Dict]:
        with self._session_factory() as session:
            q = session.query(Order, User.name, User.email).outerjoin(User, User.id == Order.user_id)
            if status:
                q = q.filter(Order.status == parse_status(status).value)
            if payment_status:
                q = q.filter(Order.payment_status == parse_payment_status(payment_status).value)
            rows = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
            result = []
            for o, name, email in rows:
                data = to_order_dto(o)
                data["customer_name"] = name
                data["customer_email"] = email
                result.append(data)
            return result

    def sales_summary(self) -> Dict:
        with self._session_factory() as session:
            counts = dict(session.query(Order.status, func.count(Order.id)).group_by(Order.status).all())
            revenue = (
                session.query(func.coalesce(func.sum(Order.total), 0))
                .filter(
                    Order.payment_status == PaymentStatus.PAID.value,
                    Order.status != OrderStatus.CANCELLED.value,
                )
                .scalar()
            )
            summary = {f"{s.value}_orders": int(counts.get(s.value, 0)) for s in OrderStatus}
            summary["total_orders"] = sum(int(c) for c in counts.values())
            summary["total_revenue"] = money(Decimal(str(revenue)))
            return summary
