from decimal import Decimal
from typing import Any, Dict, Optional


def money(value: Optional[Decimal]) -> float:
    return float(value or 0)


def iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_product_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "name": getattr(row, "name", None),
        "description": getattr(row, "description", None),
        "price": money(getattr(row, "price", 0)),
        "image_url": getattr(row, "image_url", None),
        "stock_quantity": getattr(row, "stock_quantity", 0) or 0,
        "is_active": bool(getattr(row, "is_active", True)),
    }


def to_order_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "order_number": row.order_number,
        "user_id": row.user_id,
        "status": row.status,
        "payment_status": row.payment_status,
        "payment_method": row.payment_method,
        "delivery_method": row.delivery_method,
        "address_id": row.address_id,
        "subtotal": money(row.subtotal),
        "delivery_fee": money(row.delivery_fee),
        "total": money(row.total),
        "notes": row.notes,
        "receipt_url": row.receipt_url,
        "created_at": iso(row.created_at),
        "paid_at": iso(row.paid_at),
    }


def to_order_item_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "order_id": row.order_id,
        "product_id": row.product_id,
        "product_name": row.product_name,
        "quantity": row.quantity,
        "unit_price": money(row.unit_price),
        "subtotal": money(row.subtotal),
    }


def to_address_dto(row: Any) -> Optional[Dict]:
    if row is None:
        return None
    return {
        "id": row.id,
        "recipient": row.recipient,
        "phone": row.phone,
        "street": row.street,
        "city": row.city,
        "province": row.province,
    }
