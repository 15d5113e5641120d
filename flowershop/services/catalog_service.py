from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from ..db.session import get_session
from ..models.product import Product
from ..utils.dto import to_product_dto


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    name: str
    price: Decimal
    stock_quantity: int
    is_active: bool


class CatalogService:
    """Read-only product lookups.

    Results always reflect the row as it is inside the caller's transaction;
    nothing is cached between calls.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    @staticmethod
    def lookup(session, product_id) -> Optional[ProductSnapshot]:
        r = session.query(Product).filter(Product.id == product_id).first()
        if r is None:
            return None
        return ProductSnapshot(
            id=r.id,
            name=r.name,
            price=Decimal(str(r.price)),
            stock_quantity=int(r.stock_quantity or 0),
            is_active=bool(r.is_active),
        )

    def get_product(self, product_id) -> dict:
        """Return ProductDTO for given product id."""
        with self._session_factory() as session:
            r = session.query(Product).filter(Product.id == product_id).first()
            return to_product_dto(r) if r else {}
