from typing import Dict, Optional
from decimal import Decimal
from sqlalchemy import func
from ..db.session import get_session
from ..models.product import Product
from ..models.cart_item import CartItem
from ..utils.dto import money
from ..utils.validators import ensure_id, ensure_positive_int
from .catalog_service import CatalogService
from .errors import NotFound, ValidationError
from .logging import log_event
from .stock_guard import StockGuard


class CartService:
    """Cart operations backed by DB."""

    def __init__(self, catalog: CatalogService, stock_guard: Optional[StockGuard] = None, session_factory=get_session):
        self._catalog = catalog
        self._stock = stock_guard or StockGuard()
        self._session_factory = session_factory

    def get_cart(self, *, user_id) -> Dict:
        with self._session_factory() as session:
            rows = (
                session.query(CartItem, Product)
                .join(Product, Product.id == CartItem.product_id)
                .filter(CartItem.user_id == user_id)
                .order_by(CartItem.created_at.desc(), CartItem.id.desc())
                .all()
            )
            items = []
            subtotal = Decimal("0")
            for it, prod in rows:
                line = Decimal(str(prod.price)) * it.quantity
                subtotal += line
                items.append(
                    {
                        "id": it.id,
                        "product_id": it.product_id,
                        "quantity": it.quantity,
                        "customization": it.customization,
                        "name": prod.name,
                        "price": money(prod.price),
                        "image_url": prod.image_url,
                        "stock_quantity": prod.stock_quantity,
                        "is_active": bool(prod.is_active),
                        "subtotal": money(line),
                    }
                )
            return {
                "items": items,
                "subtotal": money(subtotal),
                "itemCount": sum(i["quantity"] for i in items),
            }

    def add_item(self, *, user_id, product_id, quantity=1, customization: Optional[dict] = None) -> int:
        if product_id is None or product_id == "":
            raise ValidationError("Product ID is required")
        product_id = ensure_id(product_id, "product_id")
        qnty = ensure_positive_int(quantity, "quantity")
        with self._session_factory() as session:
            prod = self._catalog.lookup(session, product_id)
            if prod is None:
                raise NotFound("Product not found")
            if not prod.is_active:
                raise ValidationError("Product is not available")
            self._stock.check(prod, qnty)

            existing = (
                session.query(CartItem)
                .filter(CartItem.user_id == user_id, CartItem.product_id == prod.id)
                .first()
            )
            if existing:
                new_q = existing.quantity + qnty
                self._stock.check(prod, new_q)
                existing.quantity = new_q
                if customization is not None:
                    existing.customization = customization
            else:
                session.add(
                    CartItem(
                        user_id=user_id,
                        product_id=prod.id,
                        quantity=qnty,
                        customization=customization,
                    )
                )
            session.flush()
            log_event("debug", "cart.item_added", user_id=user_id, product_id=prod.id, quantity=qnty)
            return self._count(session, user_id)

    def update_item(self, *, user_id, item_id, quantity) -> None:
        qnty = ensure_positive_int(quantity, "quantity")
        with self._session_factory() as session:
            it = (
                session.query(CartItem)
                .filter(CartItem.id == item_id, CartItem.user_id == user_id)
                .first()
            )
            if not it:
                raise NotFound("Cart item not found")
            prod = self._catalog.lookup(session, it.product_id)
            if prod is None:
                raise NotFound("Product not found")
            self._stock.check(prod, qnty)
            it.quantity = qnty
            session.flush()

    def remove_item(self, *, user_id, item_id) -> None:
        with self._session_factory() as session:
            deleted = (
                session.query(CartItem)
                .filter(CartItem.id == item_id, CartItem.user_id == user_id)
                .delete(synchronize_session=False)
            )
            if not deleted:
                raise NotFound("Cart item not found")

    def clear(self, *, user_id) -> None:
        with self._session_factory() as session:
            session.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)

    def count(self, *, user_id) -> int:
        with self._session_factory() as session:
            return self._count(session, user_id)

    @staticmethod
    def _count(session, user_id) -> int:
        total = (
            session.query(func.coalesce(func.sum(CartItem.quantity), 0))
            .filter(CartItem.user_id == user_id)
            .scalar()
        )
        return int(total or 0)
