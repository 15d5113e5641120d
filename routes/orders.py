"""顧客訂單 API：下單、查詢與取消。"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, g, jsonify, request

from flowershop.auth import auth_required
from flowershop.utils.validators import json_object


orders_bp = Blueprint("flowershop_orders", __name__, url_prefix="/api/orders")


def _components() -> Dict[str, Any]:
    return current_app.extensions["flowershop_components"]


@orders_bp.get("")
@auth_required
def list_orders():
    status = request.args.get("status") or None
    orders = _components()["order_service"].list_orders(g.user["id"], status=status)
    return jsonify({"success": True, "orders": orders})


@orders_bp.post("")
@auth_required
def create_order():
    payload = json_object(request.get_json(silent=True))
    order = _components()["order_service"].create_order(
        user_id=g.user["id"],
        lines=payload.get("items"),
        delivery_method=payload.get("delivery_method"),
        payment_method=payload.get("payment_method"),
        address_id=payload.get("address_id"),
        notes=payload.get("notes"),
        receipt_url=payload.get("receipt_url"),
    )
    return jsonify({"success": True, "order": order}), 201


@orders_bp.get("/<int:order_id>")
@auth_required
def get_order(order_id: int):
    order = _components()["order_service"].get_order(order_id, g.user["id"])
    return jsonify({"success": True, "order": order})


@orders_bp.put("/<int:order_id>/cancel")
@auth_required
def cancel_order(order_id: int):
    # 條件式更新：未符合時仍回 200，以 cancelled 欄位區分
    cancelled = _components()["state_machine"].cancel(order_id, g.user["id"])
    message = "Order cancelled" if cancelled else "Order can no longer be cancelled"
    return jsonify({"success": True, "message": message, "cancelled": cancelled})
