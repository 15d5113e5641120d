import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, event, func, update
from sqlalchemy.orm import relationship
from sqlalchemy.orm.attributes import set_committed_value
from ..utils.clock import utcnow
from .base import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    READY_FOR_PICKUP = "ready_for_pickup"
    OUT_FOR_DELIVERY = "out_for_delivery"
    CLAIMED = "claimed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    TO_PAY = "to_pay"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PAID = "paid"


class DeliveryMethod(str, enum.Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


CASH_ON_DELIVERY = "cash_on_delivery"


class Order(Base):
    __tablename__ = "order"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), nullable=True, unique=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=OrderStatus.PENDING.value)
    payment_status = Column(String(32), nullable=False)
    payment_method = Column(String(32), nullable=False)
    delivery_method = Column(String(16), nullable=False)
    address_id = Column(Integer, ForeignKey("address.id"), nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False)
    delivery_fee = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)
    receipt_url = Column(String(512), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
    paid_at = Column(DateTime, nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")


def format_order_number(order_id: int, created: datetime) -> str:
    return f"FS-{created:%Y%m%d}-{order_id:06d}"


@event.listens_for(Order, "after_insert")
def _assign_order_number(mapper, connection, target):
    """Stamp the display number from the generated key, in the inserting transaction."""
    number = format_order_number(target.id, target.created_at or utcnow())
    connection.execute(
        update(Order.__table__).where(Order.__table__.c.id == target.id).values(order_number=number)
    )
    set_committed_value(target, "order_number", number)
