from flowershop.db.session import get_session
from flowershop.models import Order, Product


def stock_of(product_id):
    with get_session() as s:
        return s.query(Product.stock_quantity).filter(Product.id == product_id).scalar()


def force_status(order_id, status=None, payment_status=None):
    values = {}
    if status:
        values[Order.status] = status
    if payment_status:
        values[Order.payment_status] = payment_status
    with get_session() as s:
        s.query(Order).filter(Order.id == order_id).update(values, synchronize_session=False)


def order_row(order_id):
    with get_session() as s:
        return s.query(Order).filter(Order.id == order_id).first()
