from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Mapping

from ..models.order import DeliveryMethod
from ..utils.validators import ensure_id, ensure_positive_int
from .catalog_service import CatalogService
from .errors import EmptyOrder, ValidationError


CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class PricedOrder:
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    lines: List[PricedLine]


def parse_delivery_method(value) -> DeliveryMethod:
    try:
        return DeliveryMethod(value)
    except ValueError:
        raise ValidationError("delivery_method must be 'pickup' or 'delivery'")


class PricingEngine:
    """Computes order totals from current catalog prices.

    Prices sent by the client are never read; only ``product_id`` and
    ``quantity`` of each line matter.
    """

    def __init__(self, catalog: CatalogService, delivery_fee: Decimal = Decimal("100")):
        self._catalog = catalog
        self._delivery_fee = to_money(delivery_fee)

    def delivery_fee_for(self, delivery_method) -> Decimal:
        method = parse_delivery_method(delivery_method)
        return self._delivery_fee if method is DeliveryMethod.DELIVERY else to_money(0)

    def compute_order(self, session, lines: Iterable[Mapping], delivery_method) -> PricedOrder:
        fee = self.delivery_fee_for(delivery_method)
        if not lines:
            raise EmptyOrder()
        priced: List[PricedLine] = []
        for idx, line in enumerate(lines):
            if not isinstance(line, Mapping):
                raise ValidationError(f"items[{idx}] must be an object")
            if line.get("product_id") is None:
                raise ValidationError(f"items[{idx}].product_id is required")
            product_id = ensure_id(line["product_id"], f"items[{idx}].product_id")
            quantity = ensure_positive_int(line.get("quantity"), f"items[{idx}].quantity")
            product = self._catalog.lookup(session, product_id)
            if product is None:
                raise ValidationError(f"Product {product_id} not found")
            if not product.is_active:
                raise ValidationError(f"Product {product.name} is not available")
            priced.append(
                PricedLine(
                    product_id=product.id,
                    product_name=product.name,
                    unit_price=to_money(product.price),
                    quantity=quantity,
                )
            )
        subtotal = to_money(sum((p.subtotal for p in priced), Decimal("0")))
        return PricedOrder(subtotal=subtotal, delivery_fee=fee, total=subtotal + fee, lines=priced)
