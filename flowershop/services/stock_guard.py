from ..models.product import Product
from .catalog_service import ProductSnapshot
from .errors import StockInsufficient


class StockGuard:
    """Keeps requested quantities within available stock."""

    @staticmethod
    def check(product: ProductSnapshot, quantity: int) -> None:
        if quantity > product.stock_quantity:
            raise StockInsufficient(product.id, f"Insufficient stock for {product.name}")

    @staticmethod
    def reserve(session, product_id, quantity: int) -> None:
        # conditional decrement: concurrent orders cannot both take the last units
        updated = (
            session.query(Product)
            .filter(Product.id == product_id, Product.stock_quantity >= quantity)
            .update(
                {Product.stock_quantity: Product.stock_quantity - quantity},
                synchronize_session=False,
            )
        )
        if updated != 1:
            raise StockInsufficient(product_id, f"Insufficient stock for product {product_id}")

    @staticmethod
    def release(session, product_id, quantity: int) -> None:
        session.query(Product).filter(Product.id == product_id).update(
            {Product.stock_quantity: Product.stock_quantity + quantity},
            synchronize_session=False,
        )
